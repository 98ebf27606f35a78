import os
import json
import urllib.parse

import h11

from filedrop.common.config import ServerConfig
from filedrop.httpserver import HTTPServerHandler, srvlogger
from filedrop.pages import UPLOAD_HTML, DOWNLOAD_HTML
from filedrop.protocol.http import HTTPRequest
from filedrop.protocol.multipart import MultipartExtractor
from filedrop.storage import UploadStore


DOWNLOAD_PREFIX = '/download/'
FILE_CHUNK_SIZE = 512 * 1024


def content_disposition(filename:str):
    """
    attachment header value for a download. Non-ASCII names get an ASCII
    fallback plus the RFC 5987 filename* parameter.
    """
    fallback = filename.encode('ascii', 'replace').decode('ascii')
    value = 'attachment; filename="%s"' % fallback.replace('\\', '\\\\').replace('"', '\\"')
    if fallback != filename:
        value += "; filename*=UTF-8''%s" % urllib.parse.quote(filename, safe='')
    return value.encode('ascii')


class UploadServerHandler(HTTPServerHandler):
    """
    Routes for the upload/download site:

        GET  / and /upload.html   upload page
        GET  /download.html       download page
        GET  /download/<name>     stored file as attachment
        GET  /files*              JSON list of stored file names
        POST /upload_file         multipart upload of a single file
    """

    def __init__(self, store:UploadStore, config:ServerConfig):
        super().__init__(max_header_size=config.max_header_size)
        self.store = store
        self.max_upload_size = config.max_upload_size

    async def do_GET(self, request:HTTPRequest):
        path = request.path
        if path in ('/', '/upload.html'):
            return await self._serve_page(UPLOAD_HTML)
        if path == '/download.html':
            return await self._serve_page(DOWNLOAD_HTML)
        if path.startswith(DOWNLOAD_PREFIX):
            filename = urllib.parse.unquote(path[len(DOWNLOAD_PREFIX):])
            return await self._serve_file(filename)
        if path.startswith('/files'):
            return await self._serve_file_list()
        await self._serve_error(404, 'Page not found')

    async def do_POST(self, request:HTTPRequest):
        if request.path == '/upload_file':
            return await self._handle_file_upload(request)
        await self._serve_error(404, 'Page not found')

    async def _serve_page(self, document:str):
        await self._wrapper.send_response(200, document.encode('utf-8'), 'text/html')

    async def _serve_file(self, filename:str):
        f = self.store.open(filename)
        if f is None:
            return await self._serve_error(404, 'File not found')

        with f:
            file_size = os.fstat(f.fileno()).st_size
            headers = [("Content-Disposition", content_disposition(filename))]
            await self._wrapper.send_headers(200, 'application/octet-stream', file_size, headers)
            while True:
                chunk = f.read(FILE_CHUNK_SIZE)
                if not chunk:
                    break
                await self._wrapper.send(h11.Data(data=chunk))
            await self._wrapper.send(h11.EndOfMessage())

    async def _serve_file_list(self):
        body = json.dumps(self.store.list_files()).encode('utf-8')
        await self._wrapper.send_response(200, body, 'application/json')

    async def _handle_file_upload(self, request:HTTPRequest):
        extractor = MultipartExtractor(self._connection, request, max_upload_size=self.max_upload_size)
        upload = await extractor.run()
        name = self.store.get_upload_name(upload.filename)

        try:
            self.store.ensure_directory()
            if len(upload.data) == 0:
                # an empty payload region is reported as success without writing anything
                srvlogger.warning('Upload of %r has an empty payload, nothing written (eof: %s)' % (name, extractor.eof))
            else:
                path = self.store.save(name, upload.data)
                srvlogger.info('Stored upload %s (%s bytes)' % (path, len(upload.data)))
        except OSError as e:
            srvlogger.error('Could not store upload %r: %s' % (name, e))
            return await self._serve_error(500, 'Could not store file')

        await self._send_text(200, 'File uploaded successfully')

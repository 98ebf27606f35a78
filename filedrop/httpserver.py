import asyncio
import datetime
import email.utils
import logging
from http import HTTPStatus

import h11

from filedrop._version import __version__
from filedrop.common.config import ServerConfig
from filedrop.protocol.http import HTTPRequest, HTTPError, PeerClosed
from filedrop.server import ListenerServer

srvlogger = logging.getLogger('filedrop.httpserver')


class HTTPResponseWriter:
    """
    Frames responses on a client connection with h11.

    The request head is parsed by hand, so the h11 state machine only ever
    sees our side of the exchange: one Response, its Data and EndOfMessage.
    h11 checks that the bytes sent match the declared Content-Length.
    """

    def __init__(self, client_id, connection):
        self.client_id = client_id
        self.connection = connection
        self.conn = h11.Connection(h11.SERVER)
        # Our Server: header
        self.ident = " ".join(
            [f"filedrop/{__version__}", h11.PRODUCT_ID]
        ).encode("ascii")
        self.status_code = None

    @property
    def response_started(self):
        return self.status_code is not None

    async def send(self, event):
        if type(event) is h11.Response:
            self.status_code = event.status_code
        data = self.conn.send(event)
        try:
            await self.connection.write(data)
        except BaseException:
            self.conn.send_failed()
            raise

    @staticmethod
    def format_date_time(dt=None):
        """Generate a RFC 7231 / RFC 9110 IMF-fixdate string"""
        if dt is None:
            dt = datetime.datetime.now(datetime.timezone.utc)
        return email.utils.format_datetime(dt, usegmt=True)

    def basic_headers(self):
        return [
            ("Date", self.format_date_time().encode("ascii")),
            ("Server", self.ident),
            ("Access-Control-Allow-Origin", b"*"),
            ("Connection", b"close"),
        ]

    async def send_headers(self, status_code:int, content_type:str, content_length:int, headers=None):
        all_headers = self.basic_headers()
        all_headers.append(("Content-Type", content_type.encode("ascii")))
        if headers is not None:
            all_headers.extend(headers)
        all_headers.append(("Content-Length", str(content_length).encode("ascii")))
        response = h11.Response(
            status_code=status_code,
            headers=all_headers,
            reason=HTTPStatus(status_code).phrase.encode("ascii"),
        )
        await self.send(response)

    async def send_response(self, status_code:int, body:bytes, content_type:str, headers=None):
        await self.send_headers(status_code, content_type, len(body), headers)
        if len(body) > 0:
            await self.send(h11.Data(data=body))
        await self.send(h11.EndOfMessage())


class HTTPServerHandler:
    """
    Serves exactly one request on a connection, then closes it.

    Subclasses implement do_<METHOD> coroutines. Methods without a handler
    and HTTPError exceptions raised by handlers are turned into plain text
    error responses.
    """

    def __init__(self, max_header_size:int = 64*1024):
        self.max_header_size = max_header_size
        self._connection = None
        self._wrapper:HTTPResponseWriter = None

    async def handle(self, client_id, connection):
        self._connection = connection
        self._wrapper = HTTPResponseWriter(client_id, connection)
        peer = connection.get_peer()
        request = None
        try:
            request = await HTTPRequest.from_connection(connection, self.max_header_size)
            await self._process_request(request)
        except PeerClosed as e:
            srvlogger.debug('[%s] %s: %s, no response sent' % (client_id, peer, e))
        except HTTPError as e:
            if self._wrapper.response_started:
                srvlogger.warning('[%s] %s: error after response started: %s' % (client_id, peer, e))
            else:
                await self._serve_error(e.status, e.message)
        except OSError as e:
            srvlogger.debug('[%s] %s: transport error: %s' % (client_id, peer, e))
        except Exception:
            srvlogger.exception('[%s] Unhandled error while serving %s' % (client_id, peer))
            if not self._wrapper.response_started:
                await self._serve_error(500, 'Internal Server Error')
        finally:
            if self._wrapper.response_started:
                if request is not None:
                    srvlogger.info('[%s] %s "%s %s" %s' % (client_id, peer, request.method, request.uri, self._wrapper.status_code))
                else:
                    srvlogger.info('[%s] %s <no request> %s' % (client_id, peer, self._wrapper.status_code))
            await connection.close()

    async def _process_request(self, request:HTTPRequest):
        func = getattr(self, 'do_%s' % request.method, None)
        if func is None:
            return await self._serve_error(404, 'Page not found')
        await func(request)

    async def _send_text(self, status_code:int, text:str):
        await self._wrapper.send_response(status_code, text.encode('utf-8'), 'text/plain; charset=utf-8')

    async def _serve_error(self, status_code:int, message:str):
        try:
            await self._send_text(status_code, message)
        except (OSError, h11.LocalProtocolError) as e:
            srvlogger.debug('[%s] Could not send error response: %s' % (self._wrapper.client_id, e))


class HTTPServer:
    def __init__(self, client_handler, config:ServerConfig):
        self.client_handler = client_handler
        self.config = config
        self.listener = ListenerServer(config.host, config.port, config.buffer_size)
        self.id_counter = 0
        self.tasks = set()
        self.__main_task = None

    async def __aenter__(self):
        await self.start()
        self.__main_task = asyncio.create_task(self.serve())
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.terminate()

    def get_port(self):
        return self.listener.get_bound_port()

    async def start(self):
        await self.listener.start()

    async def terminate(self):
        if self.__main_task is not None:
            self.__main_task.cancel()
            try:
                await self.__main_task
            except asyncio.CancelledError:
                pass
            self.__main_task = None
        self.listener.close()
        for task in list(self.tasks):
            task.cancel()
        await asyncio.gather(*self.tasks, return_exceptions=True)

    async def __handle_connection(self, client_id, connection):
        handler = self.client_handler()
        await handler.handle(client_id, connection)

    async def serve(self):
        async for connection in self.listener.serve():
            client_id = self.id_counter
            self.id_counter += 1
            srvlogger.debug('Server: New client connected with id %s' % client_id)
            task = asyncio.create_task(self.__handle_connection(client_id, connection))
            self.tasks.add(task)
            task.add_done_callback(self.tasks.discard)

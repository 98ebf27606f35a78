import asyncio

BOUNDARY = '----WebKitFormBoundaryXYZ'


class FakeConnection:
	"""Stands in for ClientConnection, handing out the given chunks then EOF."""
	def __init__(self, chunks):
		self.chunks = list(chunks)
		self.reads = 0

	async def read_one(self):
		self.reads += 1
		if len(self.chunks) == 0:
			return b''
		return self.chunks.pop(0)


class RawResponse:
	def __init__(self, raw:bytes):
		self.raw = raw
		self.status = None
		self.reason = None
		self.headers = {}
		self.body = b''
		if raw == b'':
			return
		head, _, self.body = raw.partition(b'\r\n\r\n')
		lines = head.decode('latin-1').split('\r\n')
		version, status, reason = lines[0].split(' ', 2)
		self.status = int(status)
		self.reason = reason
		for line in lines[1:]:
			key, _, value = line.partition(':')
			self.headers[key.strip().lower()] = value.strip()

	def __repr__(self):
		return 'RawResponse(%s, %r)' % (self.status, self.body[:100])


def build_multipart(filename:str, content:bytes, boundary:str = BOUNDARY, closing:bytes = b'--\r\n'):
	body = b''
	body += b'--' + boundary.encode() + b'\r\n'
	body += b'Content-Disposition: form-data; name="file"; filename="' + filename.encode('utf-8') + b'"\r\n'
	body += b'Content-Type: application/octet-stream\r\n'
	body += b'\r\n'
	body += content
	body += b'\r\n--' + boundary.encode() + closing
	return body


def build_upload_request(filename:str, content:bytes, boundary:str = BOUNDARY, content_length:bool = True):
	body = build_multipart(filename, content, boundary)
	head = 'POST /upload_file HTTP/1.1\r\n'
	head += 'Host: localhost\r\n'
	head += 'Content-Type: multipart/form-data; boundary=%s\r\n' % boundary
	if content_length is True:
		head += 'Content-Length: %s\r\n' % len(body)
	head += '\r\n'
	return head.encode() + body


async def send_raw(port:int, *chunks, delay:float = 0, write_eof:bool = False):
	"""Writes the chunks to a fresh connection and reads the reply until the server closes."""
	reader, writer = await asyncio.open_connection('127.0.0.1', port)
	try:
		for chunk in chunks:
			writer.write(chunk)
			await writer.drain()
			if delay > 0:
				await asyncio.sleep(delay)
		if write_eof is True:
			writer.write_eof()
		raw = await asyncio.wait_for(reader.read(), timeout = 10)
	finally:
		writer.close()
	return RawResponse(raw)


async def http_get(port:int, path:str):
	return await send_raw(port, ('GET %s HTTP/1.1\r\nHost: localhost\r\n\r\n' % path).encode())


async def http_upload(port:int, filename:str, content:bytes, **kwargs):
	return await send_raw(port, build_upload_request(filename, content, **kwargs))

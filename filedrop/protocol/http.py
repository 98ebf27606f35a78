from filedrop import logger

HEADER_TERMINATOR = b'\r\n\r\n'


class HTTPError(Exception):
	status = 500
	message = 'Internal Server Error'

	def __init__(self, message:str = None, status:int = None):
		if message is not None:
			self.message = message
		if status is not None:
			self.status = status
		super().__init__(self.message)

class BadRequest(HTTPError):
	status = 400
	message = 'Bad Request'

class PayloadTooLarge(HTTPError):
	status = 413
	message = 'Request body too large'

class HeaderTooLarge(HTTPError):
	status = 431
	message = 'Request header too large'

class PeerClosed(Exception):
	pass


async def read_request_head(connection, max_header_size:int = 64*1024):
	"""
	Reads from the connection until the CRLFCRLF terminator shows up.
	Returns a (head, rest) tuple where rest is whatever was read past the terminator.
	Raises PeerClosed if the connection ends first, HeaderTooLarge over the size limit.
	"""
	buffer = bytearray()
	while True:
		data = await connection.read_one()
		if data == b'':
			raise PeerClosed('Connection closed before the request head was complete')
		search_from = max(0, len(buffer) - len(HEADER_TERMINATOR) + 1)
		buffer.extend(data)
		pos = buffer.find(HEADER_TERMINATOR, search_from)
		if pos != -1:
			if pos > max_header_size:
				raise HeaderTooLarge()
			return bytes(buffer[:pos]), bytes(buffer[pos+len(HEADER_TERMINATOR):])
		if len(buffer) > max_header_size:
			raise HeaderTooLarge()


class HTTPRequest:
	def __init__(self):
		self.method = None
		self.uri = None
		self.version = None
		self.headers = {}
		self.headers_upper = {}
		self.body_start = b''

	def __str__(self):
		t = '%s %s %s\r\n' % (self.method, self.uri, self.version)
		for x in self.headers:
			t += '%s: %s\r\n' % (x, self.headers[x])
		t += '\r\n'
		if len(self.body_start) > 0:
			t += '<DATA AVAILABLE>'
		return t

	@property
	def path(self):
		return self.uri.split('?', 1)[0]

	def get_header(self, name:str, default = None):
		return self.headers_upper.get(name.upper(), default)

	def get_content_length(self):
		value = self.get_header('Content-Length')
		if value is None:
			return None
		try:
			length = int(value)
		except ValueError:
			raise BadRequest('Invalid Content-Length header')
		if length < 0:
			raise BadRequest('Invalid Content-Length header')
		return length

	@staticmethod
	def from_bytes(head:bytes, body_start:bytes = b''):
		# Malformed request lines are kept as-is, they simply match no route
		req = HTTPRequest()
		req.body_start = body_start
		lines = head.decode('utf-8', errors='replace').split('\r\n')
		parts = lines[0].split()
		req.method = parts[0] if len(parts) > 0 else ''
		req.uri = parts[1] if len(parts) > 1 else ''
		req.version = parts[2] if len(parts) > 2 else ''

		for hdr_raw in lines[1:]:
			if hdr_raw.strip() == '':
				continue
			key, sep, value = hdr_raw.partition(':')
			if sep == '':
				continue
			key = key.strip()
			value = value.strip()
			req.headers[key] = value
			req.headers_upper[key.upper()] = value
		return req

	@staticmethod
	async def from_connection(connection, max_header_size:int = 64*1024):
		head, rest = await read_request_head(connection, max_header_size)
		req = HTTPRequest.from_bytes(head, rest)
		logger.debug('Request head parsed:\r\n%s' % req)
		return req

import re
from filedrop import logger
from filedrop.protocol.http import BadRequest, PayloadTooLarge, HTTPRequest

DEFAULT_FILENAME = 'upload.bin'
PART_HEADER_SEPARATOR = b'\r\n\r\n'


class MultipartError(BadRequest):
	message = 'Malformed multipart body'


class MultipartFile:
	def __init__(self, filename:str, data:bytes):
		self.filename = filename
		self.data = data

	def __repr__(self):
		return 'MultipartFile(filename=%r, size=%s)' % (self.filename, len(self.data))


def get_boundary(request:HTTPRequest):
	"""Returns the delimiter (b'--' + boundary) announced by the Content-Type header."""
	content_type = request.get_header('Content-Type')
	if content_type is None or 'multipart/form-data' not in content_type.lower():
		raise MultipartError('Expected a multipart/form-data request body')

	for param in content_type.split(';')[1:]:
		name, sep, value = param.strip().partition('=')
		if sep == '' or name.strip().lower() != 'boundary':
			continue
		boundary = value.strip().strip('"')
		if boundary == '':
			break
		return b'--' + boundary.encode('utf-8')
	raise MultipartError('Missing multipart boundary')


def get_filename(part_headers:str):
	for line in part_headers.split('\r\n'):
		if not line.lower().startswith('content-disposition:'):
			continue
		m = re.search(r'filename="([^"]*)"', line, re.IGNORECASE)
		if m is None:
			m = re.search(r'filename=([^;\s"]+)', line, re.IGNORECASE)
		if m is not None and m.group(1) != '':
			return m.group(1)
	return None


class MultipartExtractor:
	"""
	Single file multipart/form-data reader.

	Continues reading the request body from the connection until the closing
	delimiter arrives, then slices out the part headers and the raw payload.
	When the request declares a Content-Length the body is complete once that
	many bytes are buffered, otherwise once the buffer ends with the delimiter.
	"""
	def __init__(self, connection, request:HTTPRequest, max_upload_size:int = 2*1024*1024*1024):
		self.connection = connection
		self.request = request
		self.max_upload_size = max_upload_size
		self.delimiter = get_boundary(request)
		self.content_length = request.get_content_length()
		self.buffer = bytearray(request.body_start)
		self.eof = False
		self.tails = [
			self.delimiter,
			self.delimiter + b'--',
			self.delimiter + b'--\r\n',
		]

	def is_complete(self):
		if self.content_length is not None:
			return len(self.buffer) >= self.content_length
		for tail in self.tails:
			if self.buffer.endswith(tail):
				return True
		return False

	def check_size(self):
		if len(self.buffer) > self.max_upload_size:
			raise PayloadTooLarge()

	async def read_until_boundary(self):
		if self.content_length is not None and self.content_length > self.max_upload_size:
			raise PayloadTooLarge()
		self.check_size()
		while not self.is_complete():
			data = await self.connection.read_one()
			if data == b'':
				# end of stream counts as having reached the boundary
				logger.debug('Multipart body ended without closing delimiter (%s bytes buffered)' % len(self.buffer))
				self.eof = True
				break
			self.buffer.extend(data)
			self.check_size()

	def extract(self):
		sep = self.buffer.find(PART_HEADER_SEPARATOR)
		if sep == -1:
			raise MultipartError('Missing part header separator')
		part_headers = self.buffer[:sep].decode('utf-8', errors='replace')
		start = sep + len(PART_HEADER_SEPARATOR)

		filename = get_filename(part_headers)
		if filename is None:
			filename = DEFAULT_FILENAME

		# the last delimiter is the closing one, earlier matches may be payload bytes
		end = self.buffer.rfind(self.delimiter)
		if end == -1:
			end = len(self.buffer)
		else:
			end -= 2

		if end <= start:
			return MultipartFile(filename, b'')
		return MultipartFile(filename, bytes(memoryview(self.buffer)[start:end]))

	async def run(self):
		await self.read_until_boundary()
		return self.extract()

import pytest

from filedrop.protocol.http import HTTPRequest, PayloadTooLarge
from filedrop.protocol.multipart import MultipartExtractor, MultipartError, get_boundary, get_filename, DEFAULT_FILENAME
from filedrop.test.helpers import FakeConnection, build_multipart, BOUNDARY


def make_request(body_start = b'', content_type = 'multipart/form-data; boundary=%s' % BOUNDARY, content_length = None):
	head = 'POST /upload_file HTTP/1.1\r\n'
	if content_type is not None:
		head += 'Content-Type: %s\r\n' % content_type
	if content_length is not None:
		head += 'Content-Length: %s\r\n' % content_length
	return HTTPRequest.from_bytes(head.encode().rstrip(b'\r\n'), body_start)


def test_boundary_from_header():
	assert get_boundary(make_request()) == b'--' + BOUNDARY.encode()
	quoted = make_request(content_type = 'multipart/form-data; charset=utf-8; boundary="abc def"')
	assert get_boundary(quoted) == b'--abc def'


@pytest.mark.parametrize('content_type', [
	None,
	'application/json',
	'multipart/form-data',
	'multipart/form-data; boundary=',
])
def test_missing_boundary(content_type):
	with pytest.raises(MultipartError) as exc:
		get_boundary(make_request(content_type = content_type))
	assert exc.value.status == 400


def test_filename_parsing():
	assert get_filename('Content-Disposition: form-data; name="file"; filename="report.txt"') == 'report.txt'
	assert get_filename('content-disposition: form-data; name="file"; filename=plain.bin') == 'plain.bin'
	assert get_filename('Content-Disposition: form-data; name="file"; filename=""') is None
	assert get_filename('Content-Type: text/plain') is None


@pytest.mark.asyncio
async def test_boundary_arrives_in_later_read():
	body = build_multipart('report.txt', b'hello world', closing = b'')
	conn = FakeConnection([body[20:40], body[40:]])
	extractor = MultipartExtractor(conn, make_request(body[:20]))
	upload = await extractor.run()
	assert upload.filename == 'report.txt'
	assert upload.data == b'hello world'
	assert extractor.eof is False


@pytest.mark.asyncio
async def test_close_delimiter_completes_body():
	body = build_multipart('a.txt', b'abc')
	conn = FakeConnection([body[10:], b'never read'])
	upload = await MultipartExtractor(conn, make_request(body[:10])).run()
	assert upload.data == b'abc'
	assert conn.chunks == [b'never read']


@pytest.mark.asyncio
async def test_content_length_completes_body():
	# payload ends with delimiter-like bytes, which must not end the read early
	payload = b'\x00\x01--' + BOUNDARY.encode()
	body = build_multipart('bin.dat', payload)
	split = body.find(payload) + len(payload)
	conn = FakeConnection([body[:split], body[split:]])
	extractor = MultipartExtractor(conn, make_request(b'', content_length = len(body)))
	upload = await extractor.run()
	assert upload.data == payload


@pytest.mark.asyncio
async def test_payload_containing_delimiter_bytes():
	payload = b'before\r\n--' + BOUNDARY.encode() + b'\r\nafter\xff\xfe'
	body = build_multipart('tricky.bin', payload)
	upload = await MultipartExtractor(FakeConnection([]), make_request(body)).run()
	assert upload.data == payload


@pytest.mark.asyncio
async def test_default_filename():
	body = b'--' + BOUNDARY.encode() + b'\r\nContent-Disposition: form-data; name="file"\r\n\r\ndata\r\n--' + BOUNDARY.encode() + b'--\r\n'
	upload = await MultipartExtractor(FakeConnection([]), make_request(body)).run()
	assert upload.filename == DEFAULT_FILENAME
	assert upload.data == b'data'


@pytest.mark.asyncio
async def test_missing_part_separator():
	body = b'--' + BOUNDARY.encode() + b'\r\nContent-Disposition: form-data; filename="x"\r\n'
	with pytest.raises(MultipartError):
		await MultipartExtractor(FakeConnection([]), make_request(body)).run()


@pytest.mark.asyncio
async def test_truncated_body_yields_empty_payload():
	body = build_multipart('cut.txt', b'0123456789' * 10)
	truncated = body[:body.find(b'0123') + 25]
	extractor = MultipartExtractor(FakeConnection([truncated[5:]]), make_request(truncated[:5]))
	upload = await extractor.run()
	assert extractor.eof is True
	assert upload.filename == 'cut.txt'
	assert upload.data == b''


@pytest.mark.asyncio
async def test_upload_limit():
	body = build_multipart('big.bin', b'x' * 500)
	with pytest.raises(PayloadTooLarge):
		await MultipartExtractor(FakeConnection([body[100:]]), make_request(body[:100]), max_upload_size=200).run()
	with pytest.raises(PayloadTooLarge):
		await MultipartExtractor(FakeConnection([]), make_request(b'', content_length = 10**6), max_upload_size=200).run()

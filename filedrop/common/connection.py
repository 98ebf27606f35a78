import asyncio
from filedrop import logger


class ClientConnection:
	def __init__(self, reader:asyncio.StreamReader, writer:asyncio.StreamWriter, buffer_size:int = 1024):
		self.reader = reader
		self.writer = writer
		self.buffer_size = buffer_size
		self.closing = False

	def get_extra_info(self, name, default=None):
		if self.writer is None:
			return default
		return self.writer.get_extra_info(name, default)

	def get_peer(self):
		peer = self.get_extra_info('peername')
		if peer is None:
			return 'unknown'
		return '%s:%s' % (peer[0], peer[1])

	async def close(self):
		if self.closing is True:
			return
		self.closing = True
		if self.writer is None:
			return
		self.writer.close()
		try:
			await self.writer.wait_closed()
		except OSError as e:
			logger.debug('[%s] Error while closing connection: %s' % (self.get_peer(), e))

	async def write(self, data:bytes):
		self.writer.write(data)
		await self.writer.drain()

	async def read_one(self):
		"""Reads at most buffer_size bytes. Returns b'' on EOF or on a transport error."""
		if self.closing is True:
			return b''
		try:
			return await self.reader.read(self.buffer_size)
		except OSError as e:
			logger.debug('[%s] Read failed: %s' % (self.get_peer(), e))
			return b''

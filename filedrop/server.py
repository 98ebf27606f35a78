import asyncio
from filedrop import logger
from filedrop.common.connection import ClientConnection


class ListenerServer:
	def __init__(self, host:str, port:int, buffer_size:int = 1024):
		self.host = host
		self.port = port
		self.buffer_size = buffer_size
		self.server = None
		self.connection_queue = asyncio.Queue()

	async def __handle_connection(self, reader, writer):
		connection = ClientConnection(reader, writer, self.buffer_size)
		logger.debug('Accepted connection from %s' % connection.get_peer())
		await self.connection_queue.put(connection)

	def get_bound_port(self):
		if self.server is None or not self.server.sockets:
			return None
		return self.server.sockets[0].getsockname()[1]

	async def start(self):
		if self.server is not None:
			return self.server
		self.server = await asyncio.start_server(self.__handle_connection, self.host, self.port)
		logger.debug('Listening on %s:%s' % (self.host, self.get_bound_port()))
		return self.server

	def close(self):
		if self.server is not None:
			self.server.close()

	async def serve(self):
		try:
			server = await self.start()
			while server.is_serving():
				connection = await self.connection_queue.get()
				yield connection
		finally:
			self.close()

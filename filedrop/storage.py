import os
from filedrop import logger
from filedrop.protocol.http import BadRequest


class InvalidFileName(BadRequest):
	message = 'Invalid file name'


class UploadStore:
	"""
	Flat directory holding one file per uploaded name.
	The directory listing is the catalog, nothing is cached in memory.
	"""
	def __init__(self, directory:str):
		self.directory = os.path.abspath(directory)

	def resolve(self, name:str):
		"""
		Maps a file name to its absolute path inside the storage directory.
		Raises InvalidFileName for anything that is not a plain name or would
		end up outside the directory.
		"""
		if not name or name in ['.', '..']:
			raise InvalidFileName()
		if any(char in name for char in ['/', '\\', '\x00']):
			raise InvalidFileName()

		path = os.path.abspath(os.path.join(self.directory, name))
		try:
			common_path = os.path.commonpath([path, self.directory])
		except ValueError:
			raise InvalidFileName()
		if common_path != self.directory or os.path.dirname(path) != self.directory:
			raise InvalidFileName()
		return path

	def get_upload_name(self, filename:str):
		"""Client supplied names may carry a path, only the base name is kept."""
		name = os.path.basename(filename.replace('\\', '/')).strip()
		self.resolve(name)
		return name

	def ensure_directory(self):
		os.makedirs(self.directory, exist_ok=True)

	def save(self, name:str, data:bytes):
		path = self.resolve(name)
		with open(path, 'wb') as f:
			f.write(data)
		logger.debug('Stored %s (%s bytes)' % (path, len(data)))
		return path

	def open(self, name:str):
		"""Returns an open binary file object, or None if there is no regular file by that name."""
		path = self.resolve(name)
		if not os.path.isfile(path):
			return None
		try:
			return open(path, 'rb')
		except FileNotFoundError:
			return None

	def list_files(self):
		names = []
		try:
			with os.scandir(self.directory) as it:
				for entry in it:
					if not entry.is_file():
						continue
					try:
						entry.name.encode('utf-8')
					except UnicodeEncodeError:
						continue
					names.append(entry.name)
		except FileNotFoundError:
			return []
		return names

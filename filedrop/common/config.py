import os


class ConfigError(Exception):
	pass


def _int_value(name:str, value):
	if value is None:
		return None
	if isinstance(value, int):
		return value
	try:
		return int(str(value).strip())
	except ValueError:
		raise ConfigError('%s must be an integer, got %r' % (name, value))


class ServerConfig:
	"""
	Runtime settings of the upload server.

	Values are resolved in the order: explicit arguments (CLI), environment, defaults.
	"""
	def __init__(self, host:str = '0.0.0.0', port:int = 8080, upload_dir:str = 'uploads', buffer_size:int = 1024, max_header_size:int = 64*1024, max_upload_size:int = 2*1024*1024*1024):
		self.host = host
		self.port = port
		self.upload_dir = upload_dir
		self.buffer_size = buffer_size
		self.max_header_size = max_header_size
		self.max_upload_size = max_upload_size

	def __repr__(self):
		t = '==== ServerConfig ====\r\n'
		for k in self.__dict__:
			t += '%s: %s\r\n' % (k, self.__dict__[k])
		return t

	def validate(self):
		if self.port < 0 or self.port > 65535:
			raise ConfigError('Port must be between 0 and 65535, got %s' % self.port)
		if self.buffer_size < 1:
			raise ConfigError('buffer-size must be at least 1 byte, got %s' % self.buffer_size)
		if self.max_header_size < 4:
			raise ConfigError('max-header-size must be at least 4 bytes, got %s' % self.max_header_size)
		if self.max_upload_size < 1:
			raise ConfigError('max-upload-size must be at least 1 byte, got %s' % self.max_upload_size)
		if not self.upload_dir:
			raise ConfigError('Upload directory must not be empty')
		return self

	@staticmethod
	def from_env(environ = None):
		if environ is None:
			environ = os.environ

		config = ServerConfig()
		if environ.get('HOST'):
			config.host = environ['HOST']
		if environ.get('PORT'):
			config.port = _int_value('PORT', environ['PORT'])
		if environ.get('UPLOAD_DIR'):
			config.upload_dir = environ['UPLOAD_DIR']
		return config.validate()

	@staticmethod
	def from_args(args, environ = None):
		"""
		Builds the config from parsed command line arguments.
		Arguments left as None fall back to the environment, then to the defaults.
		"""
		config = ServerConfig.from_env(environ)
		overrides = {
			'host' : getattr(args, 'listen_ip', None),
			'port' : _int_value('listen-port', getattr(args, 'listen_port', None)),
			'upload_dir' : getattr(args, 'upload_dir', None),
			'buffer_size' : _int_value('buffer-size', getattr(args, 'buffer_size', None)),
			'max_header_size' : _int_value('max-header-size', getattr(args, 'max_header_size', None)),
			'max_upload_size' : _int_value('max-upload-size', getattr(args, 'max_upload_size', None)),
		}
		for name, value in overrides.items():
			if value is not None:
				setattr(config, name, value)
		return config.validate()

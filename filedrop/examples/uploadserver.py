import os
import sys
import asyncio
import logging

from filedrop import logger
from filedrop._version import __banner__
from filedrop.common.config import ServerConfig, ConfigError
from filedrop.httpserver import HTTPServer
from filedrop.storage import UploadStore
from filedrop.uploadhandler import UploadServerHandler


def get_server(config:ServerConfig):
	store = UploadStore(config.upload_dir)
	return HTTPServer(lambda: UploadServerHandler(store, config), config)

async def run_upload_server(config:ServerConfig, silent:bool = False):
	logger.debug('Starting with configuration:\r\n%s' % config)
	server = get_server(config)
	await server.start()
	if silent is False:
		print('Server running on %s:%s' % (config.host, server.get_port()))
		print('Storing uploads in %s' % os.path.abspath(config.upload_dir))
	await server.serve()

def get_parser():
	import argparse
	parser = argparse.ArgumentParser(description='Single-file upload and download HTTP server')
	parser.add_argument('--listen-ip', default = None, help='Listen IP (env: HOST, default: 0.0.0.0)')
	parser.add_argument('--listen-port', type = int, default = None, help='Listen port (env: PORT, default: 8080)')
	parser.add_argument('--upload-dir', default = None, help='Storage directory (env: UPLOAD_DIR, default: uploads)')
	parser.add_argument('--buffer-size', type=int, default=None, help='Socket read chunk size in bytes (default: 1024)')
	parser.add_argument('--max-header-size', type=int, default=None, help='Largest accepted request head in bytes (default: 64KB)')
	parser.add_argument('--max-upload-size', type=int, default=None, help='Largest accepted upload body in bytes (default: 2GB)')
	parser.add_argument('-v', '--verbose', action='count', default=0, help='Verbosity')
	parser.add_argument('-s', '--silent', action='store_true', help = 'dont print banner')
	return parser

def main():
	parser = get_parser()
	args = parser.parse_args()

	try:
		config = ServerConfig.from_args(args)
	except ConfigError as e:
		print('Error: %s' % e)
		sys.exit(1)

	if args.silent is False:
		print(__banner__)

	if args.verbose >= 1:
		logger.setLevel(logging.DEBUG)

	try:
		asyncio.run(run_upload_server(config, silent=args.silent))
	except KeyboardInterrupt:
		print('\nServer stopped by user')
	except OSError as e:
		print('Failed to start server: %s' % e)
		sys.exit(1)

if __name__ == '__main__':
	main()

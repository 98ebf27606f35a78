import contextlib

import pytest
import pytest_asyncio

from filedrop.common.config import ServerConfig
from filedrop.examples.uploadserver import get_server


@pytest_asyncio.fixture
async def start_server(tmp_path):
	"""Factory starting an upload server on a random local port, settings overridable."""
	async with contextlib.AsyncExitStack() as stack:
		async def _start(**overrides):
			config = ServerConfig(host='127.0.0.1', port=0, upload_dir=str(tmp_path / 'uploads'))
			for name, value in overrides.items():
				setattr(config, name, value)
			config.validate()
			return await stack.enter_async_context(get_server(config))
		yield _start


@pytest_asyncio.fixture
async def server(start_server):
	return await start_server()


@pytest.fixture
def upload_dir(tmp_path):
	return tmp_path / 'uploads'


__version__ = "0.1.0"
__banner__ = \
"""
# filedrop %s
# Single-file upload and download server
""" % __version__

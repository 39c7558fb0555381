from namedrill.consts import VERSION

__version__ = VERSION

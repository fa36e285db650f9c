"""Deploy an application checkout to a tag or branch."""

__version__ = "0.1.0"

"""Party Data Center: hierarchical admin front-end for the party election API."""
import logging

logging.getLogger(__name__).addHandler(logging.NullHandler())

__version__ = "0.1.0"

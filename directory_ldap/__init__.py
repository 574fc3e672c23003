"""
This is the main module for the directory LDAP library.
"""

__author__ = "Matt Pryor"
__copyright__ = "Copyright 2015 UK Science and Technology Facilities Council"

__version__ = "0.3"

from .config import *
from .core import *
from .entities import *
from .exceptions import *
from .filters import *
from .manager import *
from .notifiers import *
from .query import *

"""canvas-cli

Command-line client for Canvas LMS: authentication and credential storage.
"""

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

try:
    from importlib.metadata import PackageNotFoundError, version

    __version__ = version("canvas-cli")
except PackageNotFoundError:
    # Running from a source checkout that was never installed
    __version__ = "0.0.0"
__author__ = "canvas-cli"

from pathlib import Path

VERSION_PATH = Path(__file__).parent.resolve().with_name('VERSION')


def get_version() -> str:
  return VERSION_PATH.read_text().strip()


version = get_version()
__version__ = version

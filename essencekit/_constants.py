"""Common literal values used across essencekit.

These constants keep template markers, filenames, and defaults centralized so
the compiler, the build pipeline, and tests can import the same values without
drifting. Intended for internal use within the essencekit package.

Examples
--------
>>> from essencekit import _constants
>>> _constants.CONTENT_SLOT
'@[content]'
>>> _constants.ROOT_BASE_COMPONENTS
('BasePage', 'BaseComponent')
"""

CONTENT_SLOT = "@[content]"
ENV_TOKEN = "@ENV@"
ASSETS_TOKEN = "@ASSETS@"

DEFAULT_BASE_COMPONENT = "BaseComponent"
ROOT_BASE_COMPONENTS = ("BasePage", "BaseComponent")

COMPONENT_CONFIG_FILE = "config.json"
INDEX_FILE = "index.html"
DEFAULT_CONFIG_FILE = "essencekit.yaml"
DEFAULT_MAX_DEPTH = 50

# Common utilities
from .config_loader import (
    Settings,
    load_allowed_categories,
    load_builtin_stores,
    load_category_config,
    load_config,
    load_known_brands,
    load_settings,
    load_type_mapping,
)
from .json_utils import read_json, write_json_atomic
from .log_config import setup_logging
from .text_utils import absolute_url, clean_text

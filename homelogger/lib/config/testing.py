"""Settings override for the test suite.

Tests build a Settings object pointing at a temporary SQLite file and a
fixed device label, then install it here. Production code reads settings
through get_settings() only.
"""

import homelogger.lib.config.settings as _settings_module
from homelogger.lib.config.settings import Settings, _load_settings


def set_settings(settings: Settings | None) -> None:
    """Make get_settings() return ``settings``.

    None removes the override. The environment-backed cache is dropped as
    well, so the next get_settings() re-reads variables a test has patched.
    """
    _settings_module._settings_override = settings
    _load_settings.cache_clear()

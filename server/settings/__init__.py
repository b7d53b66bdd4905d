"""Django settings for the uploads service.

Settings are split into components under ``server/settings/components``
and combined here. All environment-dependent values are read with
python-decouple inside the components.
"""

import django_stubs_ext

# Generic admin and manager classes are subscripted at runtime
django_stubs_ext.monkeypatch()

from server.settings.components.common import *  # noqa: E402, F401, F403, WPS347
from server.settings.components.logging import *  # noqa: E402, F401, F403, WPS347
from server.settings.components.storages import *  # noqa: E402, F401, F403, WPS347
from server.settings.components.uploads import *  # noqa: E402, F401, F403, WPS347

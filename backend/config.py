import os

from geovision.constants import DATA_SOURCE as _DEFAULT_SOURCE

# Survey resources served by this instance (URL or directory)
DATA_SOURCE = os.environ.get("GEOVISION_API_SOURCE", _DEFAULT_SOURCE)

# Viewer dev servers allowed to call the API
CORS_ORIGINS = [
    origin.strip()
    for origin in os.environ.get(
        "GEOVISION_CORS_ORIGINS",
        "http://localhost:3000,http://127.0.0.1:3000",
    ).split(",")
    if origin.strip()
]

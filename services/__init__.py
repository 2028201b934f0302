# services package
from .api import (
    # REST client
    ApiClient,
    ApiError,
    AuthenticationError,
)
from .export import (
    # Download payloads
    criteria_frame,
    export_dataframe_to_csv_bytes,
    export_dataframe_to_excel_bytes,
    export_profile_json
)

__all__ = [
    'ApiClient',
    'ApiError',
    'AuthenticationError',
    'criteria_frame',
    'export_dataframe_to_csv_bytes',
    'export_dataframe_to_excel_bytes',
    'export_profile_json'
]

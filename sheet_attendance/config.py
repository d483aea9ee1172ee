import os


class Config:
    """Base configuration loaded from environment variables."""

    # --- General ---
    SECRET_KEY = os.getenv("SECRET_KEY", "super-secret-key")
    LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG").upper()
    TZ = os.getenv("TZ", "Asia/Kolkata")

    # --- Google Sheets ---
    GOOGLE_API_KEY = os.getenv("GOOGLE_API_KEY", "")
    SPREADSHEET_ID = os.getenv("SPREADSHEET_ID", "")
    STUDENTS_SHEET = os.getenv("STUDENTS_SHEET", "Students")
    DEFAULT_RANGE = os.getenv("DEFAULT_RANGE", "A1:Z1000")
    REQUEST_TIMEOUT = int(os.getenv("REQUEST_TIMEOUT", "30"))
    USE_SAMPLE_DATA_ON_ERROR = os.getenv("USE_SAMPLE_DATA_ON_ERROR", "True").lower() == "true"

    # --- Access / Auth ---
    GOOGLE_OAUTH_CLIENT_ID = os.getenv("GOOGLE_OAUTH_CLIENT_ID", "")
    GOOGLE_SERVICE_ACCOUNT_JSON = os.getenv("GOOGLE_SERVICE_ACCOUNT_JSON", "")
    GOOGLE_AUTHORIZED_USER_JSON = os.getenv("GOOGLE_AUTHORIZED_USER_JSON", "")
    SHEETS_SCOPES = ("https://www.googleapis.com/auth/spreadsheets",)

    # --- Misc ---
    DEBUG = os.getenv("FLASK_DEBUG", "False").lower() == "true"
    LOG_TO_FILE = os.getenv("LOG_TO_FILE", "True").lower() == "true"

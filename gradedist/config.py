import os
from pathlib import Path

# === CONFIG ===
DASHBOARD_HOST = os.getenv("GRADEDIST_HOST", "https://iq-analytics.austin.utexas.edu")
WORKBOOK = "Gradedistributiondashboard"
VIEW = "Externaldashboard-Crosstab"

EMBED_URL = f"{DASHBOARD_HOST}/views/{WORKBOOK}/{VIEW}?%3Aembed=y&%3AisGuestRedirectFromVizportal=n"
VIZQL_BASE = f"{DASHBOARD_HOST}/vizql/w/{WORKBOOK}/v/{VIEW}"

CONFIG_ELEMENT_ID = "tsConfigContainer"
SHEET_ID = "External dashboard-Crosstab"
WORKSHEET = "Grade distribution - external"
DATASOURCE = "[sqlproxy.1nikk2j199ysrw13cof5d1qn00ff]"
THUMBNAIL_URIS = (
    '{"External dashboard-Crosstab":"/thumb/views/Gradedistributiondashboard/Externaldashboard-Crosstab",'
    '"External dashboard-bar graph":"/thumb/views/Gradedistributiondashboard/Externaldashboard-bargraph"}'
)

# Dashboard fields
GROUPING_FIELD = "Calculation_3161245480939225089"
COURSE_PREFIX_FIELD = "COURSE_PREFIX"
PERIOD_FIELD = "ACADEMIC_YEAR_SPAN"
EXPANDED_PARAMETER = "[Parameters].[Parameter 1]"
EXPANDED_VALUE = "Expanded"

# Period index 0 -> 2010-2011
FIRST_ACADEMIC_YEAR = 2010
DEFAULT_PERIODS = range(13)

GRADE_LABELS = ("A", "A-", "B+", "B", "B-", "C+", "C", "C-", "D+", "D", "D-", "F", "Other")
ANOMALOUS_GRADE = "A+"
ANOMALOUS_GRADE_TARGET = "A"

DESCRIPTIVE_COLUMNS = (
    "Semester", "Section", "Department", "Department Code",
    "Course Number", "Course Title", "Course Full Title",
)
OUTPUT_COLUMNS = DESCRIPTIVE_COLUMNS + GRADE_LABELS

RAW_ENCODING = "utf-16-le"
RAW_FIELD_COUNT = 9

# === Paths ===
DATA_DIR = Path(os.getenv("GRADEDIST_DATA_DIR", "data"))
RAW_DIR = Path(os.getenv("GRADEDIST_RAW_DIR", DATA_DIR / "raw"))
PROCESSED_DIR = Path(os.getenv("GRADEDIST_PROCESSED_DIR", DATA_DIR / "processed"))
DB_PATH = Path(os.getenv("GRADEDIST_DB", PROCESSED_DIR / "grade_distributions.db"))

REQUEST_TIMEOUT = float(os.getenv("GRADEDIST_TIMEOUT", "60"))
USER_AGENT = "Mozilla/5.0 (Macintosh; Intel Mac OS X) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/123.0.0.0 Safari/537.36"

FRONTEND_ORIGIN = os.getenv("FRONTEND_ORIGIN", "http://localhost:5173")

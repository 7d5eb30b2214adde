# listing_intel/config.py
from dotenv import load_dotenv
import os

load_dotenv()

# Marketplace
BASE_URL = os.getenv("MARKETPLACE_BASE_URL", "https://apps.shopify.com")

# Runtime parameters
BATCH_SIZE = int(os.getenv("BATCH_SIZE", "200"))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# Parser limits
MAX_FIRST_PAGE_APPS = 24
DESCRIPTION_WORD_CAP = 500

# Feature handles look like "cf.forms.form_types.feedback"; features are
# bucketed by the segment at this index.
SUBCATEGORY_HANDLE_SEGMENT = 2

# Similarity weights: category, feature, keyword, text
SIMILARITY_WEIGHTS = tuple(
    float(w) for w in os.getenv("SIMILARITY_WEIGHTS", "0.25,0.25,0.25,0.25").split(",")
)

# File-based storage
DATA_DIR = os.getenv("DATA_DIR", "data")

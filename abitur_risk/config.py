"""Environment configuration for the HTTP surface and report exports."""

import os

from dotenv import load_dotenv

# Load environment variables
load_dotenv()

ALLOW_ORIGINS = [o.strip() for o in os.getenv('ALLOW_ORIGINS', '*').split(',') if o.strip()]
LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO').upper()
DEBUG = os.getenv('DEBUG', 'False').lower() == 'true'

EXPORT_SHEET_FINDINGS = os.getenv('EXPORT_SHEET_FINDINGS', 'Findings')
EXPORT_SHEET_SUBJECTS = os.getenv('EXPORT_SHEET_SUBJECTS', 'Subjects')

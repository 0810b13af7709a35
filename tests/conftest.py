import os
import tempfile

# Settings are cached on first import, so these must be in place before any
# project module is collected.
os.environ.setdefault("FINANCE_DATA_DIR", tempfile.mkdtemp(prefix="finance-tests-"))
os.environ.setdefault("FINANCE_BCRYPT_ROUNDS", "4")
os.environ.setdefault("FINANCE_STRICT_CATEGORIES", "false")

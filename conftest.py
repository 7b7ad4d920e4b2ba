"""
Root pytest configuration.
Sets the testing environment before any application module is imported,
so settings pick up the in-memory database and a throwaway upload folder.
"""
import os
import tempfile

os.environ["TESTING"] = "True"
os.environ["DEBUG"] = "False"
os.environ.setdefault("UPLOAD_DIR", tempfile.mkdtemp(prefix="storefront-uploads-"))
os.environ.setdefault("JWT_SECRET", "test-secret")
os.environ.setdefault("REFRESH_SECRET", "test-refresh")

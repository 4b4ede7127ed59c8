import os
import sys
import tempfile

# Keep config, logs and caches out of the real home directory
os.environ.setdefault("LTTPR_HOME", tempfile.mkdtemp(prefix="lttpr_test_"))

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

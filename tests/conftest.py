import os
import tempfile

# rt.common.setup builds its paths at import time, so point it somewhere disposable before any test imports rt.
os.environ.setdefault("RT_DATA_DIR", tempfile.mkdtemp(prefix="rt-tests-"))

import os

# ubos.main wires the FastAPI instrumentor at import time
os.environ.setdefault("OTEL_ENABLED", "true")

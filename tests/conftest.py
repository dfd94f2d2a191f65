import os

# Settings are read at import time; provide test secrets before any
# question_indexer module is imported.
os.environ.setdefault("OPENAI_API_KEY", "test-openai-key")
os.environ.setdefault("PINECONE_API_KEY", "test-pinecone-key")
os.environ.setdefault("PINECONE_INDEX_HOST", "test-index.svc.pinecone.io")

"""
Healthcare platform: patients, doctors and administrators.

- api_main: FastAPI app (routes/ holds one router per resource)
- *_service: use cases over the SQLAlchemy models, returning flat dicts
- client: typed HTTP wrappers used by the Streamlit UI
- cli: maintenance commands
"""

__version__ = "1.0.0"

# Database package: engine/session handle (session.py) and models (base.py)

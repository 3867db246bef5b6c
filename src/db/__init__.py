"""SQLAlchemy persistence for transaction events and tax reports."""

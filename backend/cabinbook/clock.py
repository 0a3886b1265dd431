from datetime import date


# Dependency for FastAPI; overridden in tests to pin "today"
def get_today() -> date:
    return date.today()

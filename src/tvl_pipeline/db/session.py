from contextlib import contextmanager


@contextmanager
def transactional_session(session_factory):
    """Session scope: commit on success, roll back on any error."""
    session = session_factory()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()

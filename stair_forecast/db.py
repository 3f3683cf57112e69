from sqlalchemy import create_engine, event
from sqlalchemy.exc import ArgumentError, IntegrityError, SQLAlchemyError
from sqlalchemy.orm import sessionmaker, scoped_session
from contextlib import contextmanager

from stair_forecast.config import config
from stair_forecast.exceptions import ConfigError, DatabaseError

def _enable_sqlite_savepoints(engine):
    """Let SQLAlchemy emit BEGIN itself so SAVEPOINTs work with pysqlite."""

    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _on_begin(connection):
        connection.exec_driver_sql("BEGIN")


class Database:
    """Database connection manager for the Stair Forecast system."""

    _instance = None

    def __new__(cls):
        """Singleton pattern implementation."""
        if cls._instance is None:
            cls._instance = super(Database, cls).__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self):
        """Initialize the database connection if not already initialized."""
        if self._initialized:
            return

        self._engine = None
        self._session_factory = None
        self._session = None
        self._initialized = True

    def initialize(self, connection_string=None):
        """Initialize database connection.

        Args:
            connection_string: Optional database connection string.
                              If not provided, will use configuration.

        Raises:
            ConfigError: If the URL cannot be parsed or its driver is not installed
        """
        if connection_string is None:
            connection_string = config.get_db_url()

        echo = config.get_boolean('DATABASE', 'echo', False)

        if self._session is not None:
            self._session.remove()
        if self._engine is not None:
            self._engine.dispose()

        self._engine = None
        try:
            if connection_string.startswith('sqlite'):
                engine = create_engine(connection_string, echo=echo)
                _enable_sqlite_savepoints(engine)
            else:
                # Connection pooling only applies to server databases
                engine = create_engine(
                    connection_string,
                    echo=echo,
                    pool_size=config.get_int('DATABASE', 'pool_size', 10),
                    max_overflow=config.get_int('DATABASE', 'max_overflow', 20),
                    pool_timeout=config.get_int('DATABASE', 'pool_timeout', 30),
                    pool_recycle=config.get_int('DATABASE', 'pool_recycle', 1800)
                )
        except (ArgumentError, ImportError) as e:
            raise ConfigError(
                f"Invalid database URL: {connection_string}",
                details={'reason': str(e)}
            ) from e

        self._engine = engine

        self._session_factory = sessionmaker(bind=self._engine)
        self._session = scoped_session(self._session_factory)

    def create_all_tables(self):
        """Create all tables defined in the models."""
        from stair_forecast.models import Base
        try:
            Base.metadata.create_all(self.engine)
        except SQLAlchemyError as e:
            raise DatabaseError(f"Unable to create tables: {e}") from e

    def drop_all_tables(self):
        """Drop all tables from the database."""
        from stair_forecast.models import Base
        Base.metadata.drop_all(self.engine)

    @property
    def session(self):
        """Get the current database session."""
        if self._session is None:
            self.initialize()
        return self._session

    @property
    def engine(self):
        """Get the database engine."""
        if self._engine is None:
            self.initialize()
        return self._engine

    @contextmanager
    def session_scope(self):
        """Provide a transactional scope around a series of operations."""
        session = self.session()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

# Global database instance
db = Database()

def get_session():
    """Get current database session."""
    return db.session()

@contextmanager
def session_scope():
    """Session scope context manager."""
    with db.session_scope() as session:
        yield session

def get_or_create(session, model, defaults=None, **keys):
    """Fetch the row matching a unique key or insert it.

    The insert runs inside a SAVEPOINT so that when a concurrent writer wins
    the unique constraint, only the savepoint is rolled back and the winning
    row is returned instead.

    Args:
        session: Database session
        model: Mapped class
        defaults: Column values used only when inserting
        **keys: Column values of the unique key

    Returns:
        Tuple (instance, created)
    """
    instance = session.query(model).filter_by(**keys).one_or_none()
    if instance is not None:
        return instance, False

    params = dict(keys)
    params.update(defaults or {})
    try:
        with session.begin_nested():
            instance = model(**params)
            session.add(instance)
        return instance, True
    except IntegrityError:
        instance = session.query(model).filter_by(**keys).one()
        return instance, False

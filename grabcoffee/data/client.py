# grabcoffee/data/client.py
from sqlalchemy.orm import Session, sessionmaker

from grabcoffee.data.database import SessionLocal, make_engine
from grabcoffee.repos.contact_repo import ContactRepo
from grabcoffee.repos.order_repo import OrderRepo
from grabcoffee.repos.payment_method_repo import PaymentMethodRepo
from grabcoffee.repos.profile_repo import ProfileRepo
from grabcoffee.utils.logging import get_logger

logger = get_logger(__name__)


class DataClient:
    """
    Klient magazynu danych tworzony jawnie przy starcie aplikacji
    i przekazywany do orkiestratora i pollera.
    """

    def __init__(self, session_factory: sessionmaker = SessionLocal):
        self._session_factory = session_factory
        self._session: Session | None = None

    @classmethod
    def from_url(cls, url: str) -> "DataClient":
        engine = make_engine(url)
        return cls(sessionmaker(bind=engine, autoflush=False, expire_on_commit=False))

    def start(self) -> "DataClient":
        if self._session is None:
            self._session = self._session_factory()
            self.orders = OrderRepo(self._session)
            self.profiles = ProfileRepo(self._session)
            self.payment_methods = PaymentMethodRepo(self._session)
            self.contacts = ContactRepo(self._session)
            logger.info("Data client started")
        return self

    def stop(self) -> None:
        if self._session is not None:
            self._session.close()
            self._session = None
            logger.info("Data client stopped")

    @property
    def session(self) -> Session:
        if self._session is None:
            raise RuntimeError("DataClient is not started")
        return self._session

    def __enter__(self):
        return self.start()

    def __exit__(self, exc_type, exc, tb):
        self.stop()

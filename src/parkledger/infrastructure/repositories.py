# File: src/parkledger/infrastructure/repositories.py
"""
Repository Pattern Implementation for the Parking Engine

Repositories give the application layer a collection-like view of zones,
spots and parking records. A Unit of Work groups repository calls into one
atomic, serializable unit: everything done inside `with uow:` is committed
together on a clean exit and rolled back on any exception.

Compare-and-set primitives:
- SpotRepository.set_occupied   flips the occupancy flag only if it differs
- SpotRepository.delete_if_vacant removes a spot only while it is vacant
- RecordRepository.complete     finalizes a record only while it is parked
Each returns False when the precondition no longer holds, which callers turn
into a conflict error.

Storage Implementations:
- InMemory*    - staged writes behind a store-wide lock (tests, demos)
- SQLAlchemy*  - relational databases via conditional UPDATE/DELETE
"""

from abc import ABC, abstractmethod
from contextlib import contextmanager
from datetime import datetime
from typing import Any, Callable, Dict, Generic, Iterator, List, Optional, Type, TypeVar
import copy
import logging
import threading

from sqlalchemy import (
    Column, DateTime, Integer, Numeric, String, Text, UniqueConstraint, create_engine
)
from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError
from sqlalchemy.exc import TimeoutError as SATimeoutError
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from ..domain.exceptions import ConflictError, DuplicateSpot, StoreUnavailable
from ..domain.models import (
    ParkingRecord, RecordStatus, Spot, TimeRange, Zone
)

T = TypeVar('T')  # Entity type


# ============================================================================
# REPOSITORY INTERFACES
# ============================================================================

class Repository(ABC, Generic[T]):
    """Base repository interface"""

    @abstractmethod
    def add(self, entity: T) -> T:
        """Add an entity to the repository"""
        pass

    @abstractmethod
    def get(self, id: str) -> Optional[T]:
        """Get an entity by ID"""
        pass

    @abstractmethod
    def get_all(self) -> List[T]:
        """Get all entities"""
        pass

    @abstractmethod
    def update(self, entity: T) -> T:
        """Update an entity"""
        pass

    @abstractmethod
    def exists(self, id: str) -> bool:
        pass

    @abstractmethod
    def count(self) -> int:
        pass


class ZoneRepository(Repository[Zone], ABC):

    @abstractmethod
    def delete(self, id: str) -> bool:
        pass


class SpotRepository(Repository[Spot], ABC):

    @abstractmethod
    def delete_if_vacant(self, id: str) -> bool:
        """Delete the spot only while it is vacant"""
        pass

    @abstractmethod
    def find_by_zone(self, zone_id: str) -> List[Spot]:
        pass

    @abstractmethod
    def find_by_placement(self, level: str, section: str, zone_id: str) -> List[Spot]:
        """All spots sharing a zone/level/section triple"""
        pass

    @abstractmethod
    def set_occupied(self, id: str, occupied: bool) -> bool:
        """Set the occupancy flag; False when it already had that value or the spot is gone"""
        pass


class RecordRepository(Repository[ParkingRecord], ABC):
    """Append-only: records are never deleted"""

    @abstractmethod
    def find_by_status(self, status: RecordStatus) -> List[ParkingRecord]:
        pass

    @abstractmethod
    def find_by_entry_time(self, time_range: TimeRange) -> List[ParkingRecord]:
        pass

    @abstractmethod
    def find_exited_between(self, time_range: TimeRange) -> List[ParkingRecord]:
        pass

    @abstractmethod
    def find_by_license_plate(self, license_plate: str) -> List[ParkingRecord]:
        pass

    @abstractmethod
    def find_active_by_spot(self, spot_id: str) -> List[ParkingRecord]:
        pass

    @abstractmethod
    def complete(self, record: ParkingRecord) -> bool:
        """Persist an exited record only if the stored one is still parked"""
        pass


# ============================================================================
# UNIT OF WORK PATTERN
# ============================================================================

class UnitOfWork(ABC):
    """Unit of Work pattern for transaction management"""

    @abstractmethod
    def __enter__(self) -> 'UnitOfWork':
        pass

    @abstractmethod
    def __exit__(self, exc_type, exc_val, exc_tb):
        pass

    @abstractmethod
    def commit(self):
        pass

    @abstractmethod
    def rollback(self):
        pass

    @property
    @abstractmethod
    def zones(self) -> ZoneRepository:
        pass

    @property
    @abstractmethod
    def spots(self) -> SpotRepository:
        pass

    @property
    @abstractmethod
    def records(self) -> RecordRepository:
        pass


UnitOfWorkFactory = Callable[[], UnitOfWork]


# ============================================================================
# IN-MEMORY REPOSITORIES
# ============================================================================

_DELETED = object()


class InMemoryStore:
    """
    Committed state shared by all in-memory units of work

    The lock is held for the whole lifetime of a unit of work, which makes
    every unit serializable.
    """

    def __init__(self, timeout_seconds: float = 5.0):
        self.zones: Dict[str, Zone] = {}
        self.spots: Dict[str, Spot] = {}
        self.records: Dict[str, ParkingRecord] = {}
        self.lock = threading.RLock()
        self.timeout_seconds = timeout_seconds


class InMemoryRepository(Repository[T]):
    """Repository over committed entities plus this unit's staged writes"""

    def __init__(self, committed: Dict[str, T], staged: Dict[str, Any]):
        self._committed = committed
        self._staged = staged
        self._logger = logging.getLogger(self.__class__.__name__)

    def _current(self) -> Dict[str, T]:
        view = dict(self._committed)
        for key, value in self._staged.items():
            if value is _DELETED:
                view.pop(key, None)
            else:
                view[key] = value
        return view

    def _find(self, predicate: Callable[[T], bool]) -> List[T]:
        return [copy.copy(e) for e in self._current().values() if predicate(e)]

    def add(self, entity: T) -> T:
        self._staged[entity.id] = copy.copy(entity)
        self._logger.debug(f"Added entity {entity.id}")
        return entity

    def get(self, id: str) -> Optional[T]:
        if id in self._staged:
            value = self._staged[id]
            return None if value is _DELETED else copy.copy(value)
        entity = self._committed.get(id)
        return copy.copy(entity) if entity is not None else None

    def get_all(self) -> List[T]:
        return [copy.copy(e) for e in self._current().values()]

    def update(self, entity: T) -> T:
        if not self.exists(entity.id):
            raise KeyError(f"Entity {entity.id} not found")
        self._staged[entity.id] = copy.copy(entity)
        self._logger.debug(f"Updated entity {entity.id}")
        return entity

    def _delete(self, id: str) -> bool:
        if not self.exists(id):
            return False
        self._staged[id] = _DELETED
        self._logger.debug(f"Deleted entity {id}")
        return True

    def exists(self, id: str) -> bool:
        return self.get(id) is not None

    def count(self) -> int:
        return len(self._current())


class InMemoryZoneRepository(InMemoryRepository[Zone], ZoneRepository):

    def delete(self, id: str) -> bool:
        return self._delete(id)


class InMemorySpotRepository(InMemoryRepository[Spot], SpotRepository):

    def add(self, entity: Spot) -> Spot:
        clash = self._find(lambda s: s.natural_key == entity.natural_key)
        if clash:
            raise DuplicateSpot([entity.spot_number])
        return super().add(entity)

    def delete_if_vacant(self, id: str) -> bool:
        spot = self.get(id)
        if spot is None or spot.occupied:
            return False
        return self._delete(id)

    def find_by_zone(self, zone_id: str) -> List[Spot]:
        return self._find(lambda s: s.zone_id == zone_id)

    def find_by_placement(self, level: str, section: str, zone_id: str) -> List[Spot]:
        return self._find(
            lambda s: s.level == level and s.section == section and s.zone_id == zone_id
        )

    def set_occupied(self, id: str, occupied: bool) -> bool:
        spot = self.get(id)
        if spot is None or spot.occupied == occupied:
            return False
        spot.occupied = occupied
        spot.touch()
        self._staged[id] = spot
        return True


class InMemoryRecordRepository(InMemoryRepository[ParkingRecord], RecordRepository):

    def find_by_status(self, status: RecordStatus) -> List[ParkingRecord]:
        return self._find(lambda r: r.status == status)

    def find_by_entry_time(self, time_range: TimeRange) -> List[ParkingRecord]:
        return self._find(lambda r: time_range.contains(r.entry_time))

    def find_exited_between(self, time_range: TimeRange) -> List[ParkingRecord]:
        return self._find(
            lambda r: r.status == RecordStatus.EXITED and time_range.contains(r.exit_time)
        )

    def find_by_license_plate(self, license_plate: str) -> List[ParkingRecord]:
        return self._find(lambda r: r.license_plate == license_plate)

    def find_active_by_spot(self, spot_id: str) -> List[ParkingRecord]:
        return self._find(lambda r: r.spot_id == spot_id and r.status == RecordStatus.PARKED)

    def complete(self, record: ParkingRecord) -> bool:
        current = self.get(record.id)
        if current is None or current.status != RecordStatus.PARKED:
            return False
        self._staged[record.id] = copy.copy(record)
        return True


class InMemoryUnitOfWork(UnitOfWork):
    """Unit of Work over an InMemoryStore"""

    def __init__(self, store: InMemoryStore):
        self.store = store
        self._logger = logging.getLogger(self.__class__.__name__)
        self._staged: Dict[str, Dict[str, Any]] = {}

    def __enter__(self) -> 'InMemoryUnitOfWork':
        if not self.store.lock.acquire(timeout=self.store.timeout_seconds):
            self._logger.error("Timed out waiting for the in-memory store lock")
            raise StoreUnavailable(
                f"Store busy for more than {self.store.timeout_seconds}s"
            )
        self._staged = {"zones": {}, "spots": {}, "records": {}}
        self._zones = InMemoryZoneRepository(self.store.zones, self._staged["zones"])
        self._spots = InMemorySpotRepository(self.store.spots, self._staged["spots"])
        self._records = InMemoryRecordRepository(self.store.records, self._staged["records"])
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        try:
            if exc_type is not None:
                self._logger.debug(f"Exception in unit of work: {exc_val}")
                self.rollback()
            else:
                self.commit()
        finally:
            self.store.lock.release()

    def commit(self):
        for name, staged in self._staged.items():
            committed = getattr(self.store, name)
            for key, value in staged.items():
                if value is _DELETED:
                    committed.pop(key, None)
                else:
                    committed[key] = value
            staged.clear()
        self._logger.debug("Transaction committed")

    def rollback(self):
        for staged in self._staged.values():
            staged.clear()
        self._logger.debug("Transaction rolled back")

    @property
    def zones(self) -> InMemoryZoneRepository:
        return self._zones

    @property
    def spots(self) -> InMemorySpotRepository:
        return self._spots

    @property
    def records(self) -> InMemoryRecordRepository:
        return self._records


# ============================================================================
# SQLALCHEMY ORM MODELS
# ============================================================================

Base = declarative_base()


class ZoneModel(Base):
    """SQLAlchemy model for Zone"""
    __tablename__ = 'parking_zones'

    id = Column(String(36), primary_key=True)
    name = Column(String(100), nullable=False)
    description = Column(Text)
    hourly_rate = Column(Numeric(12, 4), nullable=False)
    currency = Column(String(3), nullable=False, default='USD')

    created_at = Column(DateTime, default=datetime.now)
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now)


class SpotModel(Base):
    """SQLAlchemy model for Spot"""
    __tablename__ = 'parking_spots'

    id = Column(String(36), primary_key=True)
    spot_number = Column(Text, nullable=False)
    level = Column(Text, nullable=False, default='')
    section = Column(Text, nullable=False, default='')
    # No foreign key: deleting a zone leaves its spots in place
    zone_id = Column(String(36), nullable=False, index=True)
    occupied = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime, default=datetime.now)
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now)

    __table_args__ = (
        UniqueConstraint('spot_number', 'level', 'section', 'zone_id', name='uq_spot_placement'),
    )


class RecordModel(Base):
    """SQLAlchemy model for ParkingRecord"""
    __tablename__ = 'parking_records'

    id = Column(String(36), primary_key=True)
    license_plate = Column(Text, nullable=False, index=True)
    spot_id = Column(String(36), nullable=False, index=True)
    zone_id = Column(String(36), nullable=False, index=True)
    entry_time = Column(DateTime, nullable=False, index=True)
    exit_time = Column(DateTime, index=True)
    status = Column(String(10), nullable=False, default='parked', index=True)
    duration_minutes = Column(Integer)
    fee = Column(Numeric(14, 4))
    currency = Column(String(3))

    # Rate in effect at entry, used when the zone is gone at exit
    entry_hourly_rate = Column(Numeric(12, 4))
    entry_currency = Column(String(3))

    created_at = Column(DateTime, default=datetime.now)
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now)


# ============================================================================
# DOMAIN <-> ORM MAPPERS
# ============================================================================

class Mapper:
    """Maps between domain models and ORM models"""

    @staticmethod
    def zone_to_orm(zone: Zone) -> ZoneModel:
        return ZoneModel(
            id=zone.id,
            name=zone.name,
            description=zone.description,
            hourly_rate=zone.hourly_rate,
            currency=zone.currency,
            created_at=zone.created_at,
            updated_at=zone.updated_at
        )

    @staticmethod
    def zone_to_domain(model: ZoneModel) -> Zone:
        return Zone(
            id=model.id,
            name=model.name,
            description=model.description,
            hourly_rate=model.hourly_rate,
            currency=model.currency,
            created_at=model.created_at,
            updated_at=model.updated_at
        )

    @staticmethod
    def spot_to_orm(spot: Spot) -> SpotModel:
        return SpotModel(
            id=spot.id,
            spot_number=spot.spot_number,
            level=spot.level,
            section=spot.section,
            zone_id=spot.zone_id,
            occupied=1 if spot.occupied else 0,
            created_at=spot.created_at,
            updated_at=spot.updated_at
        )

    @staticmethod
    def spot_to_domain(model: SpotModel) -> Spot:
        return Spot(
            id=model.id,
            spot_number=model.spot_number,
            level=model.level,
            section=model.section,
            zone_id=model.zone_id,
            occupied=bool(model.occupied),
            created_at=model.created_at,
            updated_at=model.updated_at
        )

    @staticmethod
    def record_to_orm(record: ParkingRecord) -> RecordModel:
        return RecordModel(
            id=record.id,
            license_plate=record.license_plate,
            spot_id=record.spot_id,
            zone_id=record.zone_id,
            entry_time=record.entry_time,
            exit_time=record.exit_time,
            status=record.status.value,
            duration_minutes=record.duration_minutes,
            fee=record.fee,
            currency=record.currency,
            entry_hourly_rate=record.entry_hourly_rate,
            entry_currency=record.entry_currency,
            created_at=record.created_at,
            updated_at=record.updated_at
        )

    @staticmethod
    def record_to_domain(model: RecordModel) -> ParkingRecord:
        return ParkingRecord(
            id=model.id,
            license_plate=model.license_plate,
            spot_id=model.spot_id,
            zone_id=model.zone_id,
            entry_time=model.entry_time,
            exit_time=model.exit_time,
            status=model.status,
            duration_minutes=model.duration_minutes,
            fee=model.fee,
            currency=model.currency,
            entry_hourly_rate=model.entry_hourly_rate,
            entry_currency=model.entry_currency,
            created_at=model.created_at,
            updated_at=model.updated_at
        )


# ============================================================================
# SQLALCHEMY REPOSITORIES
# ============================================================================

@contextmanager
def translate_store_errors(logger: logging.Logger, action: str) -> Iterator[None]:
    """
    Map SQLAlchemy failures onto the engine's error kinds

    Constraint violations become ConflictError; connection failures,
    timeouts and any other database error become StoreUnavailable.
    """
    try:
        yield
    except IntegrityError as e:
        logger.warning(f"Constraint violated while {action}: {e.orig}")
        raise ConflictError(f"Conflicting write while {action}") from e
    except (OperationalError, SATimeoutError) as e:
        logger.error(f"Store unavailable while {action}: {e}")
        raise StoreUnavailable(f"Store unavailable while {action}") from e
    except SQLAlchemyError as e:
        logger.error(f"Database error while {action}: {e}")
        raise StoreUnavailable(f"Database error while {action}") from e


class SQLAlchemyRepository(Repository[T], ABC):
    """Base SQLAlchemy repository"""

    def __init__(self, session: Session):
        self.session = session
        self._logger = logging.getLogger(self.__class__.__name__)

    @property
    @abstractmethod
    def model_class(self) -> Type[Base]:
        pass

    @abstractmethod
    def to_domain(self, model: Base) -> T:
        pass

    @abstractmethod
    def to_orm(self, entity: T) -> Base:
        pass

    def _query(self):
        return self.session.query(self.model_class)

    def add(self, entity: T) -> T:
        with translate_store_errors(self._logger, "adding entity"):
            self.session.add(self.to_orm(entity))
            self.session.flush()
        self._logger.debug(f"Added entity: {entity.id}")
        return entity

    def get(self, id: str) -> Optional[T]:
        with translate_store_errors(self._logger, f"getting entity {id}"):
            model = self.session.get(self.model_class, id)
            return self.to_domain(model) if model else None

    def get_all(self) -> List[T]:
        with translate_store_errors(self._logger, "listing entities"):
            return [self.to_domain(m) for m in self._query().all()]

    def update(self, entity: T) -> T:
        with translate_store_errors(self._logger, f"updating entity {entity.id}"):
            model = self.session.get(self.model_class, entity.id)
            if not model:
                raise KeyError(f"Entity {entity.id} not found")

            updated_model = self.to_orm(entity)
            for column in self.model_class.__table__.columns:
                if column.name not in ('id', 'created_at'):
                    setattr(model, column.name, getattr(updated_model, column.name))

            self.session.flush()
        self._logger.debug(f"Updated entity: {entity.id}")
        return entity

    def exists(self, id: str) -> bool:
        with translate_store_errors(self._logger, f"checking existence of {id}"):
            return self._query().filter(self.model_class.id == id).count() > 0

    def count(self) -> int:
        with translate_store_errors(self._logger, "counting entities"):
            return self._query().count()

    def find_by_criteria(self, criteria: Dict[str, Any]) -> List[T]:
        """Equality-filtered query over model columns"""
        with translate_store_errors(self._logger, "finding by criteria"):
            query = self._query()
            for key, value in criteria.items():
                query = query.filter(getattr(self.model_class, key) == value)
            return [self.to_domain(m) for m in query.all()]


class SQLAlchemyZoneRepository(SQLAlchemyRepository[Zone], ZoneRepository):

    @property
    def model_class(self) -> Type[Base]:
        return ZoneModel

    def to_domain(self, model: ZoneModel) -> Zone:
        return Mapper.zone_to_domain(model)

    def to_orm(self, entity: Zone) -> ZoneModel:
        return Mapper.zone_to_orm(entity)

    def delete(self, id: str) -> bool:
        with translate_store_errors(self._logger, f"deleting zone {id}"):
            deleted = self._query().filter(ZoneModel.id == id).delete(synchronize_session='fetch')
        return deleted > 0


class SQLAlchemySpotRepository(SQLAlchemyRepository[Spot], SpotRepository):

    @property
    def model_class(self) -> Type[Base]:
        return SpotModel

    def to_domain(self, model: SpotModel) -> Spot:
        return Mapper.spot_to_domain(model)

    def to_orm(self, entity: Spot) -> SpotModel:
        return Mapper.spot_to_orm(entity)

    def add(self, entity: Spot) -> Spot:
        with translate_store_errors(self._logger, f"adding spot {entity.id}"):
            try:
                self.session.add(self.to_orm(entity))
                self.session.flush()
            except IntegrityError as e:
                self._logger.warning(f"Duplicate spot {entity.natural_key}: {e.orig}")
                raise DuplicateSpot([entity.spot_number]) from e
        self._logger.debug(f"Added spot: {entity.id}")
        return entity

    def delete_if_vacant(self, id: str) -> bool:
        with translate_store_errors(self._logger, f"deleting spot {id}"):
            deleted = self._query().filter(
                SpotModel.id == id,
                SpotModel.occupied == 0
            ).delete(synchronize_session='fetch')
        return deleted > 0

    def find_by_zone(self, zone_id: str) -> List[Spot]:
        return self.find_by_criteria({"zone_id": zone_id})

    def find_by_placement(self, level: str, section: str, zone_id: str) -> List[Spot]:
        return self.find_by_criteria({"level": level, "section": section, "zone_id": zone_id})

    def set_occupied(self, id: str, occupied: bool) -> bool:
        with translate_store_errors(self._logger, f"setting occupancy of spot {id}"):
            changed = self._query().filter(
                SpotModel.id == id,
                SpotModel.occupied == (0 if occupied else 1)
            ).update({
                'occupied': 1 if occupied else 0,
                'updated_at': datetime.now()
            }, synchronize_session='fetch')
        return changed > 0


class SQLAlchemyRecordRepository(SQLAlchemyRepository[ParkingRecord], RecordRepository):

    @property
    def model_class(self) -> Type[Base]:
        return RecordModel

    def to_domain(self, model: RecordModel) -> ParkingRecord:
        return Mapper.record_to_domain(model)

    def to_orm(self, entity: ParkingRecord) -> RecordModel:
        return Mapper.record_to_orm(entity)

    def find_by_status(self, status: RecordStatus) -> List[ParkingRecord]:
        return self.find_by_criteria({"status": status.value})

    def find_by_entry_time(self, time_range: TimeRange) -> List[ParkingRecord]:
        with translate_store_errors(self._logger, "querying records by entry time"):
            models = self._query().filter(
                RecordModel.entry_time >= time_range.start_time,
                RecordModel.entry_time <= time_range.end_time
            ).all()
            return [self.to_domain(m) for m in models]

    def find_exited_between(self, time_range: TimeRange) -> List[ParkingRecord]:
        with translate_store_errors(self._logger, "querying exited records"):
            models = self._query().filter(
                RecordModel.status == RecordStatus.EXITED.value,
                RecordModel.exit_time >= time_range.start_time,
                RecordModel.exit_time <= time_range.end_time
            ).all()
            return [self.to_domain(m) for m in models]

    def find_by_license_plate(self, license_plate: str) -> List[ParkingRecord]:
        return self.find_by_criteria({"license_plate": license_plate})

    def find_active_by_spot(self, spot_id: str) -> List[ParkingRecord]:
        return self.find_by_criteria({"spot_id": spot_id, "status": RecordStatus.PARKED.value})

    def complete(self, record: ParkingRecord) -> bool:
        with translate_store_errors(self._logger, f"completing record {record.id}"):
            changed = self._query().filter(
                RecordModel.id == record.id,
                RecordModel.status == RecordStatus.PARKED.value
            ).update({
                'status': record.status.value,
                'exit_time': record.exit_time,
                'duration_minutes': record.duration_minutes,
                'fee': record.fee,
                'currency': record.currency,
                'updated_at': record.updated_at
            }, synchronize_session='fetch')
        return changed > 0


# ============================================================================
# SQLALCHEMY UNIT OF WORK
# ============================================================================

class SQLAlchemyUnitOfWork(UnitOfWork):
    """Unit of Work implementation with SQLAlchemy"""

    def __init__(self, session_factory: Callable[[], Session]):
        self.session_factory = session_factory
        self._logger = logging.getLogger(self.__class__.__name__)

    def __enter__(self) -> 'SQLAlchemyUnitOfWork':
        self.session = self.session_factory()

        self._zones = SQLAlchemyZoneRepository(self.session)
        self._spots = SQLAlchemySpotRepository(self.session)
        self._records = SQLAlchemyRecordRepository(self.session)

        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        try:
            if exc_type is not None:
                self._logger.debug(f"Exception in unit of work: {exc_val}")
                self.rollback()
            else:
                self.commit()
        finally:
            self.session.close()

    def commit(self):
        """Commit the transaction"""
        try:
            with translate_store_errors(self._logger, "committing transaction"):
                self.session.commit()
            self._logger.debug("Transaction committed")
        except Exception:
            self.session.rollback()
            raise

    def rollback(self):
        """Rollback the transaction"""
        self.session.rollback()
        self._logger.debug("Transaction rolled back")

    @property
    def zones(self) -> SQLAlchemyZoneRepository:
        return self._zones

    @property
    def spots(self) -> SQLAlchemySpotRepository:
        return self._spots

    @property
    def records(self) -> SQLAlchemyRecordRepository:
        return self._records


# ============================================================================
# REPOSITORY FACTORY
# ============================================================================

class RepositoryFactory:
    """Factory for creating unit-of-work factories"""

    @staticmethod
    def create_in_memory_uow_factory(
        store: Optional[InMemoryStore] = None,
        timeout_seconds: float = 5.0
    ) -> UnitOfWorkFactory:
        """Units of work over one shared in-memory store"""
        store = store or InMemoryStore(timeout_seconds)
        return lambda: InMemoryUnitOfWork(store)

    @staticmethod
    def create_sqlalchemy_engine(database_url: str, timeout_seconds: float = 5.0):
        if database_url in ("sqlite://", "sqlite:///:memory:"):
            # One shared connection so every session sees the same database
            return create_engine(
                database_url,
                connect_args={"check_same_thread": False},
                poolclass=StaticPool
            )
        if database_url.startswith("sqlite"):
            return create_engine(
                database_url,
                connect_args={"timeout": timeout_seconds, "check_same_thread": False}
            )
        return create_engine(database_url, pool_timeout=timeout_seconds, pool_pre_ping=True)

    @staticmethod
    def create_sqlalchemy_uow_factory(
        database_url: str,
        timeout_seconds: float = 5.0
    ) -> UnitOfWorkFactory:
        """Create SQLAlchemy units of work, creating tables if they don't exist"""
        engine = RepositoryFactory.create_sqlalchemy_engine(database_url, timeout_seconds)
        SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

        logger = logging.getLogger("RepositoryFactory")
        with translate_store_errors(logger, "creating tables"):
            Base.metadata.create_all(bind=engine)

        return lambda: SQLAlchemyUnitOfWork(SessionLocal)

"""Shared fixtures for the CRM test suite.

Everything runs against an in-memory record store; no database, no
Streamlit runtime, no background sync thread unless a test starts one.
"""

import copy
from typing import Dict, List

import pytest

from salescrm.record_store import MemoryRecordStore
from salescrm.data_management.realtime_sync import RealTimeDataManager
from salescrm.data_management.services import CRMService
from salescrm.data_management.storage import CRMStorage


SAMPLE_USERS: List[Dict] = [
    {"id": "A1", "employeeId": "A1", "name": "Asha One", "username": "a.one",
     "role": "manager", "manager": None, "password": "asha@123", "target": 1000},
    {"id": "E1", "employeeId": "E1", "name": "Eko One", "username": "e.one",
     "role": "employee", "manager": "A1", "password": "eko@1234", "target": 400},
]

SAMPLE_SALES: List[Dict] = [
    {"id": "s1", "userId": "E1", "quantity": 2, "unitPrice": 100, "discount": 0,
     "totalAmount": 199, "date": "2024-01-01", "productName": "X", "customer": "C"},
]


@pytest.fixture
def sample_users() -> List[Dict]:
    return copy.deepcopy(SAMPLE_USERS)


@pytest.fixture
def sample_sales() -> List[Dict]:
    return copy.deepcopy(SAMPLE_SALES)


@pytest.fixture
def store() -> MemoryRecordStore:
    return MemoryRecordStore()


@pytest.fixture
def storage(store) -> CRMStorage:
    return CRMStorage(store, prefix="crm_")


@pytest.fixture
def seeded_storage(storage, sample_users, sample_sales) -> CRMStorage:
    storage.save_users(sample_users)
    storage.save_sales_records(sample_sales)
    storage.save_attendance_records([])
    return storage


@pytest.fixture
def manager(seeded_storage):
    sync_manager = RealTimeDataManager(seeded_storage, sync_interval=60, auto_start=False)
    yield sync_manager
    sync_manager.stop()


@pytest.fixture
def service(seeded_storage, manager) -> CRMService:
    return CRMService(seeded_storage, manager)

# salescrm/data_management/__init__.py
"""
CRM Data Management Module

Components:
- storage: Typed collections over the record store
- validation: Field and sales entry validation
- data_integrity: Whole-collection validation and idempotent repair
- access_control: Role-based visibility (admin/manager/employee)
- realtime_sync: Polling broadcaster and write path
- services: Employee, sales and attendance operations
- metrics: Dashboard KPIs
- charts: Altair visualizations
- export: CSV and Excel export

Usage:
    from salescrm.data_management import (
        get_storage,
        get_realtime_manager,
        CRMService,
        AccessControl,
        CRMMetrics,
    )
"""

from .storage import CRMStorage, get_storage
from .access_control import (
    AccessControl,
    get_visible_users,
    get_visible_sales_records,
    get_visible_attendance_records,
    can_view_user_data,
    get_team_hierarchy,
    get_reporting_structure,
)
from .data_integrity import (
    DataValidationResult,
    RepairResult,
    validate_user_data,
    validate_sales_data,
    validate_attendance_data,
    validate_all_data,
    fix_data_issues,
    validate_before_save,
    check_referential_integrity,
)
from .realtime_sync import RealTimeDataManager, get_realtime_manager, reset_realtime_manager
from .services import (
    CRMService,
    CRMError,
    RecordNotFoundError,
    ValidationFailedError,
    PermissionDeniedError,
)
from .metrics import CRMMetrics
from .charts import CRMCharts
from .export import CRMExport, export_to_csv

# Constants
from .constants import (
    ROLES,
    ATTENDANCE_STATUSES,
    STORAGE_KEYS,
    LOG_KEYS,
    DATA_TYPES,
    COLORS,
)

__all__ = [
    # Classes
    'CRMStorage',
    'AccessControl',
    'DataValidationResult',
    'RepairResult',
    'RealTimeDataManager',
    'CRMService',
    'CRMMetrics',
    'CRMCharts',
    'CRMExport',

    # Errors
    'CRMError',
    'RecordNotFoundError',
    'ValidationFailedError',
    'PermissionDeniedError',

    # Functions
    'get_storage',
    'get_realtime_manager',
    'reset_realtime_manager',
    'get_visible_users',
    'get_visible_sales_records',
    'get_visible_attendance_records',
    'can_view_user_data',
    'get_team_hierarchy',
    'get_reporting_structure',
    'validate_user_data',
    'validate_sales_data',
    'validate_attendance_data',
    'validate_all_data',
    'fix_data_issues',
    'validate_before_save',
    'check_referential_integrity',
    'export_to_csv',

    # Constants
    'ROLES',
    'ATTENDANCE_STATUSES',
    'STORAGE_KEYS',
    'LOG_KEYS',
    'DATA_TYPES',
    'COLORS',
]

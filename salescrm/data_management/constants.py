# salescrm/data_management/constants.py
"""
Constants for the CRM Data Management Module

Centralized configuration for:
- Role definitions and access levels
- Storage keys and audit log names
- Integrity thresholds
- Seed employees and product catalogue
- Export styling
"""

# =====================================================================
# ROLE DEFINITIONS
# =====================================================================

ROLES = ['admin', 'manager', 'employee']

# Full access: every record
FULL_ACCESS_ROLES = ['admin']

# Team access: self + direct reports (one level only)
TEAM_ACCESS_ROLES = ['manager']

# =====================================================================
# RECORD VALUES
# =====================================================================

ATTENDANCE_STATUSES = ['present', 'absent', 'late']

PAYMENT_STATUSES = ['paid', 'pending', 'partial', 'overdue']

PRIORITIES = ['low', 'medium', 'high', 'urgent']

DEAL_STAGES = [
    'prospect', 'qualified', 'proposal', 'negotiation',
    'closed-won', 'closed-lost',
]

# =====================================================================
# STORAGE KEYS (prefixed with STORAGE_KEY_PREFIX at runtime)
# =====================================================================

STORAGE_KEYS = {
    'USERS': 'users',
    'ATTENDANCE': 'attendance',
    'SALES': 'sales',
    'TARGETS': 'targets',
    'CURRENT_USER': 'current_user',
    'PRODUCTS': 'products',
    'LOCKOUT_DATA': 'lockout_data',
}

LOG_KEYS = {
    'SYNC': 'sync_log',
    'LOGIN': 'login_log',
    'SALES': 'sales_log',
    'ATTENDANCE': 'attendance_log',
    'PROFILE_UPDATE': 'profile_update_log',
    'EXPORT': 'export_log',
}

# Listener categories broadcast by the sync manager
DATA_TYPES = ['users', 'sales', 'attendance']
SYNC_TIME = 'syncTime'
LISTENER_CATEGORIES = DATA_TYPES + [SYNC_TIME]

# =====================================================================
# INTEGRITY THRESHOLDS
# =====================================================================

# Allowed drift between totalAmount and quantity * unitPrice - discount
TOTAL_AMOUNT_TOLERANCE = 0.01

# Shifts longer than this are flagged as implausible (warning only)
MAX_SHIFT_HOURS = 24

# =====================================================================
# SEED DATA
# =====================================================================

DEFAULT_USERS = [
    # Admin
    {
        'id': 'ADMIN001',
        'employeeId': 'ADMIN001',
        'name': 'Manoj Kumar',
        'username': 'manoj.kumar',
        'email': 'manoj.kumar@company.com',
        'role': 'admin',
        'department': 'Management',
        'joinDate': '2024-01-01',
        'password': 'admin@123',
        'phone': '+91 9876543210',
        'designation': 'Sales Director',
        'target': 500000,
        'manager': None,
        'territory': 'All India',
        'isActive': True,
    },

    # Reporting managers
    {
        'id': 'BM001',
        'employeeId': 'BM001',
        'name': 'Salim Javed',
        'username': 'salim.javed',
        'email': 'salim.javed@company.com',
        'role': 'manager',
        'department': 'Sales',
        'joinDate': '2024-01-15',
        'password': 'salim@2024',
        'phone': '+91 7870660333',
        'designation': 'District General Manager (DGM)',
        'target': 300000,
        'manager': 'ADMIN001',
        'territory': 'Bihar/Delhi & West Bengal/Odisha',
        'isActive': True,
    },
    {
        'id': 'BM002',
        'employeeId': 'BM002',
        'name': 'Sandeep Bediawala',
        'username': 'sandeep.bediawala',
        'email': 'sandeep.bediawala@company.com',
        'role': 'manager',
        'department': 'Sales',
        'joinDate': '2024-01-20',
        'password': 'sandeep@2024',
        'phone': '+91 9876543214',
        'designation': 'Regional Manager (Gujarat)',
        'target': 280000,
        'manager': 'ADMIN001',
        'territory': 'Gujarat & Chhattisgarh',
        'isActive': True,
    },
    {
        'id': 'BM003',
        'employeeId': 'BM003',
        'name': 'Pawan Khanna',
        'username': 'pawan.khanna',
        'email': 'pawan.khanna@company.com',
        'role': 'manager',
        'department': 'Sales',
        'joinDate': '2024-02-01',
        'password': 'pawan@2024',
        'phone': '+91 9174995813',
        'designation': 'Sales Manager',
        'target': 250000,
        'manager': 'ADMIN001',
        'territory': 'MP & Rajasthan',
        'isActive': True,
    },
    {
        'id': 'BM004',
        'employeeId': 'BM004',
        'name': 'Dhiraj Prakash',
        'username': 'dhiraj.prakash',
        'email': 'dhiraj.prakash@company.com',
        'role': 'manager',
        'department': 'Sales',
        'joinDate': '2024-02-05',
        'password': 'dhiraj@2024',
        'phone': '+91 9174995814',
        'designation': 'Sales Manager',
        'target': 250000,
        'manager': 'ADMIN001',
        'territory': 'Maharashtra & Goa',
        'isActive': True,
    },

    # Sales executives
    {
        'id': 'BM178',
        'employeeId': 'BM178',
        'name': 'Manoj Kumar Singh',
        'username': 'manoj.singh',
        'email': 'manoj.singh@company.com',
        'role': 'employee',
        'department': 'Sales',
        'joinDate': '2024-01-15',
        'password': 'bm178@123',
        'phone': '+91 9876543211',
        'designation': 'Senior Sales Executive',
        'target': 150000,
        'manager': 'BM001',
        'territory': 'Bihar',
        'isActive': True,
    },
    {
        'id': 'BM214',
        'employeeId': 'BM214',
        'name': 'Pramod Nair',
        'username': 'pramod.nair',
        'email': 'pramod.nair@company.com',
        'role': 'employee',
        'department': 'Sales',
        'joinDate': '2024-02-15',
        'password': 'bm214@123',
        'phone': '+91 9876543213',
        'designation': 'Sales Executive',
        'target': 120000,
        'manager': 'BM002',
        'territory': 'Gujarat',
        'isActive': True,
    },
    {
        'id': 'BM222',
        'employeeId': 'BM222',
        'name': 'Sonu Mehta',
        'username': 'sonu.mehta',
        'email': 'sonu.mehta@company.com',
        'role': 'employee',
        'department': 'Sales',
        'joinDate': '2024-04-15',
        'password': 'bm222@123',
        'phone': '+91 9876543217',
        'designation': 'Sales Executive',
        'target': 120000,
        'manager': 'BM003',
        'territory': 'Rajasthan',
        'isActive': True,
    },
]

DEFAULT_PRODUCTS = [
    # Projectors
    {'id': 'PROJ_GALAXY', 'name': 'Galaxy Projector', 'price': 11513, 'category': 'Projector', 'model': 'Galaxy'},
    {'id': 'PROJ_PLAY', 'name': 'Play Projector', 'price': 10073, 'category': 'Projector', 'model': 'Play'},
    {'id': 'PROJ_EPIC', 'name': 'Epic Projector', 'price': 6473, 'category': 'Projector', 'model': 'Epic'},
    {'id': 'PROJ_JOY', 'name': 'Joy Projector', 'price': 5039, 'category': 'Projector', 'model': 'Joy'},
    {'id': 'PROJ_PIXA', 'name': 'Pixa Projector', 'price': 7199, 'category': 'Projector', 'model': 'Pixa'},

    # Screens
    {'id': 'SCREEN_M65', 'name': 'Screen M65', 'price': 11513, 'category': 'Screen', 'model': 'M65'},
    {'id': 'SCREEN_M80', 'name': 'Screen M80', 'price': 12951, 'category': 'Screen', 'model': 'M80'},
    {'id': 'SCREEN_M100', 'name': 'Screen M100', 'price': 14393, 'category': 'Screen', 'model': 'M100'},
    {'id': 'SCREEN_FR140', 'name': 'Screen FR140', 'price': 40111, 'category': 'Screen', 'model': 'FR140'},
    {'id': 'SCREEN_FR160', 'name': 'Screen FR160', 'price': 50291, 'category': 'Screen', 'model': 'FR160'},

    # Extension boards
    {'id': 'EXT_BOARD_331', 'name': 'Extension Board 331', 'price': 791, 'category': 'Extension', 'model': '331'},
    {'id': 'EXT_BOARD_411', 'name': 'Extension Board 411', 'price': 719, 'category': 'Extension', 'model': '411'},
    {'id': 'EXT_BOARD_422', 'name': 'Extension Board 422', 'price': 863, 'category': 'Extension', 'model': '422'},
    {'id': 'EXT_BOARD_524', 'name': 'Extension Board 524', 'price': 1079, 'category': 'Extension', 'model': '524'},

    # SMPS
    {'id': 'SMPS_450', 'name': 'SMPS 450', 'price': 633, 'category': 'SMPS', 'model': '450'},
    {'id': 'SMPS_500', 'name': 'SMPS 500', 'price': 950, 'category': 'SMPS', 'model': '500'},
    {'id': 'SMPS_650', 'name': 'SMPS 650', 'price': 1266, 'category': 'SMPS', 'model': '650'},
    {'id': 'SMPS_800', 'name': 'SMPS 800', 'price': 1900, 'category': 'SMPS', 'model': '800'},
    {'id': 'SMPS_1000', 'name': 'SMPS 1000', 'price': 2374, 'category': 'SMPS', 'model': '1000'},

    # AI
    {'id': 'AI_MODEL', 'name': 'AI Model', 'price': 2771, 'category': 'AI', 'model': 'Standard'},
]

# =====================================================================
# CHART & EXPORT SETTINGS
# =====================================================================

COLORS = {
    "sales": "#1f77b4",
    "target": "#d62728",
    "achievement_good": "#28a745",
    "achievement_bad": "#dc3545",
    "present": "#10B981",
    "late": "#F59E0B",
    "absent": "#EF4444",
}

CHART_WIDTH = 600
CHART_HEIGHT = 320

EXCEL_STYLES = {
    'header_fill_color': '1F77B4',
    'header_font_color': 'FFFFFF',
    'currency_format': '#,##0.00',
    'date_format': 'yyyy-mm-dd',
}

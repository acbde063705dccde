# Default email templates, keyed by template id. Each can be overridden by the
# settings options ``email_template_<id>_subject`` and ``email_template_<id>``.

DEFAULT_TEMPLATES = {
    "welcome": {
        "subject": "Welcome to {{ organization_name }} Leave Management",
        "content": (
            "<h2>Welcome {{ first_name }}!</h2>"
            "<p>Your account has been created for the {{ organization_name }} leave management system.</p>"
            "<p><strong>Login Details:</strong><br>Username: {{ username }}<br>"
            "Temporary Password: {{ temporary_password }}</p>"
            "<p>Please log in at: <a href=\"{{ login_url }}\">{{ login_url }}</a></p>"
            "<p>We recommend changing your password after your first login.</p>"
            "<p>Best regards,<br>{{ organization_name }} HR Team</p>"
        ),
    },
    "leave_request_notification": {
        "subject": "New Leave Request from {{ full_name }}",
        "content": (
            "<h2>New Leave Request</h2>"
            "<p><strong>Employee:</strong> {{ full_name }} ({{ department }})</p>"
            "<p><strong>Leave Type:</strong> {{ leave_type }}</p>"
            "<p><strong>Dates:</strong> {{ start_date }} to {{ end_date }} ({{ total_days }} days)</p>"
            "<p><strong>Reason:</strong> {{ reason }}</p>"
            "<p>Please review and approve/reject this request in the admin panel.</p>"
        ),
    },
    "leave_approved": {
        "subject": "Leave Request Approved - {{ leave_type }}",
        "content": (
            "<h2>Leave Request Approved</h2>"
            "<p>Dear {{ first_name }},</p>"
            "<p>Your {{ leave_type }} request has been approved by {{ approved_by }}.</p>"
            "<p><strong>Details:</strong><br>Dates: {{ start_date }} to {{ end_date }}<br>"
            "Total Days: {{ total_days }}</p>"
            "<p>Remaining Leave Balance: {{ leave_balance }} days</p>"
            "<p>Have a great time off!</p>"
            "<p>Best regards,<br>{{ organization_name }} HR Team</p>"
        ),
    },
    "leave_rejected": {
        "subject": "Leave Request Rejected - {{ leave_type }}",
        "content": (
            "<h2>Leave Request Rejected</h2>"
            "<p>Dear {{ first_name }},</p>"
            "<p>Unfortunately, your {{ leave_type }} request has been rejected.</p>"
            "<p><strong>Details:</strong><br>Dates: {{ start_date }} to {{ end_date }}<br>"
            "Total Days: {{ total_days }}</p>"
            "<p><strong>Reason for Rejection:</strong> {{ rejection_reason }}</p>"
            "<p>Please contact HR if you have any questions.</p>"
            "<p>Best regards,<br>{{ organization_name }} HR Team</p>"
        ),
    },
    "password_reset": {
        "subject": "Password Reset - {{ organization_name }} Leave Management",
        "content": (
            "<h2>Password Reset</h2>"
            "<p>Dear {{ first_name }},</p>"
            "<p>Your password has been reset for the leave management system.</p>"
            "<p><strong>New Temporary Password:</strong> {{ temporary_password }}</p>"
            "<p>Please log in at: <a href=\"{{ login_url }}\">{{ login_url }}</a></p>"
            "<p>We recommend changing this password after logging in.</p>"
            "<p>Best regards,<br>{{ organization_name }} HR Team</p>"
        ),
    },
}

SAMPLE_VARIABLES = {
    "first_name": "John",
    "last_name": "Doe",
    "full_name": "John Doe",
    "username": "johndoe",
    "email": "john.doe@example.com",
    "department": "Ministry",
    "leave_type": "Annual Leave",
    "start_date": "2024-01-15",
    "end_date": "2024-01-19",
    "total_days": "5",
    "reason": "Family vacation",
    "status": "Approved",
    "approved_by": "Jane Smith",
    "approved_date": "2024-01-10",
    "rejected_by": "Jane Smith",
    "rejected_date": "2024-01-10",
    "rejection_reason": "Insufficient staffing during this period",
    "leave_balance": "15",
    "temporary_password": "TempPass123",
}

"""Stratus constants.

Wire tags emitted by the scanner, the store types they map to, and the
defaults shared by configuration and the runtime components.
"""

# Source tags (the "type" field of an inbound event envelope)
INSTANCE_TAG = "Instance"
DB_INSTANCE_TAG = "DBInstance"
SECURITY_GROUP_TAG = "SecurityGroup"
DB_SECURITY_GROUP_TAG = "DBSecurityGroup"
LOAD_BALANCER_TAG = "LoadBalancerDescription"
AUTOSCALING_GROUP_TAG = "AutoScalingGroup"
ROUTE_TABLE_TAG = "RouteTable"
SUBNET_TAG = "Subnet"

EXPECTED_TAGS = frozenset({
    INSTANCE_TAG,
    DB_INSTANCE_TAG,
    SECURITY_GROUP_TAG,
    DB_SECURITY_GROUP_TAG,
    LOAD_BALANCER_TAG,
    AUTOSCALING_GROUP_TAG,
    ROUTE_TABLE_TAG,
    SUBNET_TAG,
})

# Tags whose discovery errors count against the instance error rate
INSTANCE_TAGS = frozenset({INSTANCE_TAG, DB_INSTANCE_TAG})

# Store types persisted in the "type" column
INSTANCE_TYPE = "ec2"
DB_INSTANCE_TYPE = "rds"
SECURITY_GROUP_TYPE = "security"
DB_SECURITY_GROUP_TYPE = "rds-security"
LOAD_BALANCER_TYPE = "elb"
AUTOSCALING_GROUP_TYPE = "autoscaling"

INSTANCE_TYPES = (INSTANCE_TYPE, DB_INSTANCE_TYPE)
GROUP_TYPES = (
    SECURITY_GROUP_TYPE,
    DB_SECURITY_GROUP_TYPE,
    LOAD_BALANCER_TYPE,
    AUTOSCALING_GROUP_TYPE,
)

# Column widths
MAX_ID_LENGTH = 128
MAX_TYPE_LENGTH = 32

# Onboarding
DEFAULT_ERROR_THRESHOLD = 0.3
DEFAULT_SCAN_WORKERS = 16
MAX_TRACKED_SCANS = 100

# Consumer
DEFAULT_SHUTDOWN_TIMEOUT = 5.0  # seconds
DEFAULT_RECEIVE_WAIT = 10  # seconds, SQS long poll
MAX_RECEIVE_BATCH = 10  # SQS hard limit

# Notification templates understood by the email relay
EMAIL_DISCOVERY_TEMPLATE = "discovery-completion"
EMAIL_ERROR_TEMPLATE = "discovery-failure"

# HTTP
CUSTOMER_ID_HEADER = "Customer-Id"

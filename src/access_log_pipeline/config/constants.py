"""
Constants for access-log formats, dedup state and pipeline defaults.
"""

# =============================================================================
# Log Formats
# =============================================================================

AWS_ELB_FORMAT = "aws_elb"
AWS_CLOUDFRONT_WEB_FORMAT = "aws_cf_web"

# Service namespaces used for state files and default dataset names
SERVICE_ELB = "elb"
SERVICE_CLOUDFRONT = "cloudfront"

FORMAT_SERVICES = {
    AWS_ELB_FORMAT: SERVICE_ELB,
    AWS_CLOUDFRONT_WEB_FORMAT: SERVICE_CLOUDFRONT,
}

# 2017-07-31T20:30:57.975041Z spline_reticulation_lb 10.11.12.13:47882 10.3.47.87:8080 0.000021 0.010962 0.000016 200 200 766 17 "PUT https://api.simulation.io:443/reticulate/spline/1 HTTP/1.1" "libhoney-go/1.3.3" ECDHE-RSA-AES128-GCM-SHA256 TLSv1.2
ELB_LOG_FORMAT = (
    "$timestamp $elb $client_authority $backend_authority "
    "$request_processing_time $backend_processing_time $response_processing_time "
    "$elb_status_code $backend_status_code $received_bytes $sent_bytes "
    '"$request" "$user_agent" $ssl_cipher $ssl_protocol'
)

# Date and time arrive as two fields and are rejoined into $timestamp
CLOUDFRONT_WEB_LOG_FORMAT = (
    "$timestamp $x_edge_location $sc_bytes $c_ip $cs_method $cs_host "
    "$cs_uri_stem $sc_status $cs_referer $cs_user_agent $cs_uri_query "
    "$cs_cookie $x_edge_result_type $x_edge_request_id $x_host_header "
    "$cs_protocol $cs_bytes $time_taken $x_forwarded_for $ssl_protocol "
    "$ssl_cipher $x_edge_response_result_type $cs_protocol_version"
)

TIME_FIELD_NAME = "timestamp"
ELB_TIME_FORMAT = "%Y-%m-%dT%H:%M:%S.%fZ"
CLOUDFRONT_TIME_FORMAT = "%Y-%m-%dT%H:%M:%S"

COMMENT_PREFIX = "#"

# =============================================================================
# Dedup State
# =============================================================================

STATE_FILE_FORMAT = "{service}-state.json"

# Usually about 50 objects per hour show up. Old objects drop out of the
# bucket listing long before they would be evicted here.
MAX_PROCESSED_OBJECTS = 20000

# =============================================================================
# Pipeline Defaults
# =============================================================================

DEFAULT_LINE_TIMEOUT_SECONDS = 1.0
DEFAULT_SAMPLE_RATE = 1
DEFAULT_CLEAR_FREQUENCY_SEC = 300

# =============================================================================
# Telemetry Defaults
# =============================================================================

DEFAULT_API_HOST = "https://api.honeycomb.io"
DEFAULT_DATASET = "aws-$SERVICE-access"
DEFAULT_MAX_BATCH_SIZE = 500
DEFAULT_SEND_FREQUENCY_MS = 100
DEFAULT_PENDING_EVENTS = 10000
DEFAULT_HTTP_TIMEOUT_SECONDS = 10.0

class AppStatusCode:
    # Success
    OPERATION_SUCCESSFUL = "100"
    DATA_RETRIEVED_SUCCESSFULLY = "101"
    CREATED_SUCCESSFULLY = "102"
    UPDATED_SUCCESSFULLY = "103"
    DELETED_SUCCESSFULLY = "104"

    # Authentication / authorization
    AUTHENTICATION_TOKEN_INVALID = "201"
    AUTHENTICATION_TOKEN_EXPIRED = "202"
    AUTHORIZATION_FORBIDDEN = "203"

    # Input
    INVALID_INPUT = "301"
    REQUIRED_VALIDATION_ERROR = "302"

    # Domain
    RECORD_NOT_FOUND = "401"
    DUPLICATE_ADD_ERROR = "402"
    STALE_VERSION = "403"
    INVALID_STATE_TRANSITION = "404"
    INCOMPLETE_SUBMISSION = "405"

    # Generic
    OPERATION_FAILED = "500"
    OPERATION_ERROR = "501"

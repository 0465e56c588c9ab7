"""Swagger/OpenAPI configuration for the application."""
from flask_swagger_ui import get_swaggerui_blueprint

# Swagger UI configuration
SWAGGER_URL = '/api/docs'
API_URL = '/api/swagger.json'

def get_swagger_blueprint():
    """Create and return swagger UI blueprint."""
    swaggerui_blueprint = get_swaggerui_blueprint(
        SWAGGER_URL,
        API_URL,
        config={
            'app_name': "Smart Attendance API",
            'defaultModelsExpandDepth': -1,
            'docExpansion': 'list',
            'filter': True,
            'supportedSubmitMethods': ['get', 'post', 'patch', 'delete'],
            'validatorUrl': None,
        }
    )
    return swaggerui_blueprint

SESSION_ID = {"name": "session_id", "in": "path", "required": True, "schema": {"type": "integer"}}
COURSE_ID = {"name": "course_id", "in": "path", "required": True, "schema": {"type": "integer"}}

def _body(required, properties):
    return {
        "required": True,
        "content": {
            "application/json": {
                "schema": {"type": "object", "required": required, "properties": properties}
            }
        }
    }

def _operation(tag, summary, ok="200", errors=(), parameters=None, body=None):
    """One path operation with the shared envelope schemas."""
    responses = {
        ok: {
            "description": "Success",
            "content": {"application/json": {"schema": {"$ref": "#/components/schemas/Success"}}}
        }
    }
    for status in errors:
        responses[str(status)] = {
            "description": "Error",
            "content": {"application/json": {"schema": {"$ref": "#/components/schemas/Error"}}}
        }

    operation = {
        "tags": [tag],
        "summary": summary,
        "security": [{"bearerAuth": []}],
        "responses": responses
    }
    if parameters:
        operation["parameters"] = parameters
    if body:
        operation["requestBody"] = body
    return operation

def _transition(summary, errors=(404, 409)):
    return {"post": _operation("Sessions", summary, errors=errors, parameters=[SESSION_ID])}

def generate_swagger_spec():
    """Generate OpenAPI/Swagger specification."""
    return {
        "openapi": "3.0.0",
        "info": {
            "title": "Smart Attendance API",
            "description": "QR code attendance for university class sessions",
            "version": "1.0.0"
        },
        "servers": [
            {"url": "http://127.0.0.1:5000", "description": "Development server"}
        ],
        "components": {
            "securitySchemes": {
                "bearerAuth": {
                    "type": "http",
                    "scheme": "bearer",
                    "bearerFormat": "JWT"
                }
            },
            "schemas": {
                "AttendanceSession": {
                    "type": "object",
                    "properties": {
                        "id": {"type": "integer"},
                        "course_id": {"type": "integer"},
                        "section_id": {"type": "integer"},
                        "session_name": {"type": "string"},
                        "session_date": {"type": "string", "format": "date"},
                        "start_time": {"type": "string", "format": "date-time"},
                        "end_time": {"type": "string", "format": "date-time"},
                        "status": {"type": "string", "enum": ["scheduled", "active", "completed"]},
                        "is_locked": {"type": "boolean"},
                        "qr_expires_at": {"type": "string", "format": "date-time", "nullable": True}
                    }
                },
                "AttendanceRecord": {
                    "type": "object",
                    "properties": {
                        "id": {"type": "integer"},
                        "session_id": {"type": "integer"},
                        "student_id": {"type": "integer"},
                        "status": {"type": "string", "enum": ["present", "late", "absent"]},
                        "check_in_time": {"type": "string", "format": "date-time"},
                        "method": {"type": "string", "enum": ["qr_code", "manual"]},
                        "token_verified": {"type": "boolean"}
                    }
                },
                "SessionStats": {
                    "type": "object",
                    "properties": {
                        "total": {"type": "integer"},
                        "present": {"type": "integer"},
                        "on_time": {"type": "integer"},
                        "late": {"type": "integer"},
                        "absent": {"type": "integer"},
                        "attendance_rate": {"type": "integer"},
                        "on_time_rate": {"type": "integer"},
                        "late_rate": {"type": "integer"},
                        "absent_rate": {"type": "integer"},
                        "degraded": {"type": "boolean"}
                    }
                },
                "Error": {
                    "type": "object",
                    "properties": {
                        "error": {"type": "boolean"},
                        "message": {"type": "string"},
                        "status_code": {"type": "integer"},
                        "code": {"type": "string"},
                        "retryable": {"type": "boolean"},
                        "details": {"type": "object"}
                    }
                },
                "Success": {
                    "type": "object",
                    "properties": {
                        "error": {"type": "boolean", "default": False},
                        "message": {"type": "string"},
                        "data": {"type": "object"},
                        "notice": {"type": "string", "enum": ["already_marked"]}
                    }
                }
            }
        },
        "paths": {
            "/api/sessions/": {
                "post": _operation(
                    "Sessions", "Schedule a session", ok="201", errors=(400, 403),
                    body=_body(
                        ["course_id", "section_id", "session_name", "start_time", "end_time"],
                        {
                            "course_id": {"type": "integer"},
                            "section_id": {"type": "integer"},
                            "session_name": {"type": "string", "maxLength": 100},
                            "start_time": {"type": "string", "format": "date-time"},
                            "end_time": {"type": "string", "format": "date-time"},
                            "location": {"type": "string", "maxLength": 100}
                        }
                    )
                )
            },
            "/api/sessions/{session_id}": {
                "get": _operation("Sessions", "Session details", errors=(404,), parameters=[SESSION_ID]),
                "delete": _operation("Sessions", "Delete a session (admin)", errors=(403, 404), parameters=[SESSION_ID])
            },
            "/api/sessions/{session_id}/start": _transition("Start a scheduled session"),
            "/api/sessions/{session_id}/lock": _transition("Pause check-ins"),
            "/api/sessions/{session_id}/unlock": _transition("Resume check-ins"),
            "/api/sessions/{session_id}/close": _transition("Close a session and snapshot its summary"),
            "/api/sessions/{session_id}/rotate-token": _transition("Replace the QR token", errors=(404, 409, 429)),
            "/api/sessions/{session_id}/extend": {
                "post": _operation(
                    "Sessions", "Extend the end time", errors=(400, 404, 409), parameters=[SESSION_ID],
                    body=_body(["minutes"], {"minutes": {"type": "integer", "minimum": 1, "maximum": 120}})
                )
            },
            "/api/sessions/{session_id}/qr": {
                "get": _operation("Sessions", "Current QR payload and image", errors=(404, 409), parameters=[SESSION_ID])
            },
            "/api/sessions/{session_id}/countdown": {
                "get": _operation("Sessions", "Seconds until the session ends", errors=(404,), parameters=[SESSION_ID])
            },
            "/api/attendance/checkin": {
                "post": _operation(
                    "Attendance", "Student QR check-in", ok="201", errors=(400, 403, 404, 409, 429, 503),
                    body=_body([], {
                        "qr_data": {"type": "string", "description": "Scanned QR content"},
                        "session_id": {"type": "integer"},
                        "token": {"type": "string"}
                    })
                )
            },
            "/api/attendance/sessions/{session_id}/mark": {
                "post": _operation(
                    "Attendance", "Manual check-in by the lecturer", ok="201", errors=(400, 403, 404, 409),
                    parameters=[SESSION_ID],
                    body=_body(["student_id"], {"student_id": {"type": "integer"}})
                )
            },
            "/api/attendance/sessions/{session_id}/records": {
                "patch": _operation(
                    "Attendance", "Override statuses of selected students", errors=(400, 404),
                    parameters=[SESSION_ID],
                    body=_body(["student_ids", "status"], {
                        "student_ids": {"type": "array", "items": {"type": "integer"}},
                        "status": {"type": "string", "enum": ["present", "late", "absent"]}
                    })
                )
            },
            "/api/attendance/my-records": {
                "get": _operation("Attendance", "Current student's attendance history")
            },
            "/api/reports/sessions/{session_id}/summary": {
                "get": _operation("Reports", "Live and final session statistics", errors=(404,), parameters=[SESSION_ID])
            },
            "/api/reports/sessions/{session_id}/export": {
                "get": _operation("Reports", "Roster rows with statuses", errors=(404, 503), parameters=[SESSION_ID])
            },
            "/api/reports/courses/{course_id}/summary": {
                "get": _operation("Reports", "Totals across a course's sessions", parameters=[COURSE_ID])
            }
        }
    }

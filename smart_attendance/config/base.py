"""Base configuration for the Smart Attendance System."""
import os
from datetime import timedelta

class Config:
    """Base configuration."""
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'dev-secret-key-change-in-production'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ECHO = False

    # JWT Configuration
    JWT_SECRET_KEY = os.environ.get('JWT_SECRET_KEY') or 'jwt-secret-key-change-in-production'
    JWT_ACCESS_TOKEN_EXPIRES = timedelta(hours=2)
    JWT_ALGORITHM = 'HS256'

    # CORS
    CORS_ORIGINS = ["http://localhost:*", "https://*.vercel.app", "http://127.0.0.1:*"]

    # Rate Limiting
    RATELIMIT_STORAGE_URI = os.environ.get('REDIS_URL') or 'memory://'
    RATELIMIT_DEFAULT = "200 per day;50 per hour"

    # Attendance window
    ATTENDANCE_GRACE_MINUTES = 10
    MAX_EXTENSION_MINUTES = 120
    MIN_SESSION_MINUTES = 15
    MAX_SESSION_MINUTES = 8 * 60

    # QR tokens
    QR_TOKEN_SECRET = os.environ.get('QR_TOKEN_SECRET') or 'qr-secret-key-change-in-production'
    QR_TOKEN_BYTES = 24
    QR_BASE_URL = os.environ.get('QR_BASE_URL') or 'http://localhost:3000'
    QR_ACCEPT_LEGACY_PAYLOADS = True

    # Shows a student's other enrollments on NotEnrolled (support use only)
    ENROLLMENT_DIAGNOSTICS = False

    # Logging
    LOG_LEVEL = 'INFO'
    LOG_FILE = 'logs/app.log'

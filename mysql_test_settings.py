"""
This is an extension of the default test_settings.py file that uses MySQL for
both the default and the live database. The workflow should run fine on
SQLite, but mirroring rows between two real servers is closer to production.

For the most part, you can use test_settings.py instead (that's the default if
you just run "pytest" with no arguments).

If you need a compatible MySQL server running locally, spin one up with:
docker run --rm \
    -e MYSQL_DATABASE=test_pw_db \
    -e MYSQL_USER=test_pw_user \
    -e MYSQL_PASSWORD=test_pw_pass \
    -e MYSQL_RANDOM_ROOT_PASSWORD=true \
    -p 3306:3306 mysql:8
"""

from test_settings import *

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.mysql",
        "NAME": "pw_db",
        "USER": "test_pw_user",
        "PASSWORD": "test_pw_pass",
        "HOST": "127.0.0.1",
        "PORT": "3306",
        "OPTIONS": {
            "charset": "utf8mb4"
        }
    },
    "live": {
        "ENGINE": "django.db.backends.mysql",
        "NAME": "pw_live_db",
        "USER": "test_pw_user",
        "PASSWORD": "test_pw_pass",
        "HOST": "127.0.0.1",
        "PORT": "3306",
        # Keep the live connection open between requests, and don't hang on
        # an unreachable live server.
        "CONN_MAX_AGE": 300,
        "OPTIONS": {
            "charset": "utf8mb4",
            "connect_timeout": 30,
        }
    },
}

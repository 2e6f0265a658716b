"""Auth example — register, log in, and keep the session in a signed cookie.

Run with::

    pico run examples/auth
"""

import hashlib

DB = "sqlite:///auth.db"
SECRET_KEY = "change-me"
TITLE = "Pico auth"

_SALT = b"pico-auth-example"


def hash_password(params):
    """Replace the clear-text password with its hash before the data-call."""
    password = str(params.get("password", ""))
    digest = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), _SALT, 100_000)
    return {**params, "password": digest.hex()}


def login_result(user):
    # SETJWT runs after this and reads the user fields back out.
    if user and user.get("id"):
        return {"message": "Login successful! Welcome back.", **user}
    return {"message": "Invalid email or password. Please try again."}


def register_message(user):
    if user and user.get("id"):
        return "Registration successful! Please log in with your new account."
    return "Registration failed. Email may already be in use."


def session_claims(result, claims):
    if result.get("id"):
        return {"user_id": result["id"], "email": result["email"]}
    return claims


def whoami(result, claims):
    if claims:
        return {"message": f"Hello {claims['email']}", "user_id": claims["user_id"]}
    return {"message": "Hello anonymous user"}


HOME = {"value": "", "label": "Home"}

ROUTES = {
    "": {
        "GET": {
            "VIEW": [
                {
                    "TYPE": "LINKS",
                    "LINKS": [
                        {"value": "login", "label": "Login"},
                        {"value": "register", "label": "Register"},
                        {"value": "me", "label": "Who am I?"},
                    ],
                },
            ],
        },
    },
    "login": {
        "GET": {
            "VIEW": [
                {
                    "TYPE": "POSTFORM",
                    "TITLE": "Login",
                    "TARGET": "/login",
                    "FIELDS": [
                        {"id": "email", "type": "email", "label": "Email"},
                        {"id": "password", "type": "password", "label": "Password"},
                        {"id": "button", "type": "submit", "value": "Login"},
                    ],
                },
            ],
        },
        "POST": {
            "PREPROCESS": hash_password,
            "SQL": "authenticate_user.sql",
            "POSTPROCESS": login_result,
            "SETJWT": session_claims,
            "VIEW": [{"TYPE": "OBJECT", "TITLE": "Login"}, {"TYPE": "LINKS", "LINKS": [HOME]}],
        },
    },
    "register": {
        "GET": {
            "VIEW": [
                {
                    "TYPE": "POSTFORM",
                    "TITLE": "Register",
                    "TARGET": "/register",
                    "FIELDS": [
                        {"id": "email", "type": "email", "label": "Email"},
                        {"id": "password", "type": "password", "label": "Password"},
                        {"id": "button", "type": "submit", "value": "Register"},
                    ],
                },
            ],
        },
        "POST": {
            "PREPROCESS": hash_password,
            "SQL": "register_user.sql",
            "POSTPROCESS": register_message,
            "VIEW": [
                {"TYPE": "MARKDOWN"},
                {"TYPE": "LINKS", "LINKS": [{"value": "login", "label": "Login"}, HOME]},
            ],
        },
    },
    "me": {
        "GET": {
            "POSTPROCESS": whoami,
            "VIEW": [{"TYPE": "OBJECT", "TITLE": "Session"}, {"TYPE": "LINKS", "LINKS": [HOME]}],
        },
    },
    "users": {
        "GET": {
            "SQL": "list_users.sql",
            "POLICY": lambda users, claims: claims is not None,
            "VIEW": [{"TYPE": "TABLE", "TITLE": "Users"}],
        },
    },
    "ping": {
        "GET": {
            "SQL": "pong.sql",
        },
    },
    "logout": {
        "POST": {
            "SETJWT": lambda: None,
            "VIEW": [{"TYPE": "LINKS", "LINKS": [HOME]}],
        },
    },
}

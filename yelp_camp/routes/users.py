"""Account pages: register, login, logout."""

from flask import Blueprint, flash, redirect, render_template, url_for

from yelp_camp.auth import (
    authenticate,
    current_state,
    login_user,
    logout_user,
    pop_return_to,
    register_user,
)
from yelp_camp.exceptions import AppError
from yelp_camp.schemas import RegisterForm, validate_form

bp = Blueprint("users", __name__)

LOGIN_FAILED_MESSAGE = "Password or username is incorrect"


@bp.get("/register")
def register_form():
    return render_template("users/register.html")


@bp.post("/register")
def register():
    body = current_state().body
    try:
        form = validate_form(RegisterForm, body, "user")
        user = register_user(form.username, form.email, form.password)
    except AppError as exc:
        # Form errors go back to the form instead of the error page
        flash(exc.message or "Registration failed", "error")
        return redirect(url_for("users.register_form"))

    login_user(user)
    flash("Welcome to Yelp Camp!", "success")
    return redirect(url_for("campgrounds.index"))


@bp.get("/login")
def login_form():
    return render_template("users/login.html")


@bp.post("/login")
def login():
    body = current_state().body
    username, password = body.get("username"), body.get("password")
    user = None
    if isinstance(username, str) and isinstance(password, str):
        user = authenticate(username, password)
    if user is None:
        flash(LOGIN_FAILED_MESSAGE, "error")
        return redirect(url_for("users.login_form"))

    return_to = pop_return_to(url_for("campgrounds.index"))
    login_user(user)
    flash("Welcome back!", "success")
    return redirect(return_to)


@bp.get("/logout")
def logout():
    logout_user()
    flash("Goodbye!", "success")
    return redirect(url_for("campgrounds.index"))

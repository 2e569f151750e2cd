"""
Tests for authentication and admin authorization.
"""

import pytest

from storefront.errors import AuthError, ForbiddenError, StorefrontError, ValidationError
from storefront.services.auth import authenticate_user, authorize_admin


class TestAuthorizeAdmin:

    def test_missing_id(self, db):
        with db.get_session_context() as session:
            with pytest.raises(AuthError) as exc_info:
                authorize_admin(session, None)
        assert exc_info.value.status_code == 401
        assert exc_info.value.message == "Please log in first"

    def test_unknown_id(self, db):
        with db.get_session_context() as session:
            with pytest.raises(AuthError) as exc_info:
                authorize_admin(session, "nobody")
        assert exc_info.value.status_code == 401
        assert exc_info.value.message == "Invalid ID provided"

    def test_non_admin_is_forbidden(self, db, user_id):
        with db.get_session_context() as session:
            with pytest.raises(ForbiddenError) as exc_info:
                authorize_admin(session, user_id)
        assert exc_info.value.status_code == 403
        assert exc_info.value.message == "You do not have admin privileges"

    def test_admin_proceeds(self, db, admin_id):
        with db.get_session_context() as session:
            assert authorize_admin(session, admin_id).id == admin_id


class TestAuthenticateUser:

    def test_regular_user_is_accepted(self, db, user_id):
        with db.get_session_context() as session:
            assert authenticate_user(session, user_id).role == "user"

    def test_empty_id_is_rejected(self, db):
        with db.get_session_context() as session:
            with pytest.raises(AuthError):
                authenticate_user(session, "")


class TestAdminRoutes:
    """The admin dependency guards every admin endpoint."""

    @pytest.mark.parametrize("path", [
        "/api/v1/product/admin-products",
        "/api/v1/order/all",
        "/api/v1/dashboard/stats",
        "/api/v1/dashboard/charts",
    ])
    def test_admin_endpoints(self, client, user_id, admin_id, path):
        response = client.get(path)
        assert response.status_code == 401
        assert response.json() == {"success": False, "message": "Please log in first"}

        response = client.get(path, params={"id": "nobody"})
        assert response.status_code == 401
        assert response.json()["message"] == "Invalid ID provided"

        response = client.get(path, params={"id": user_id})
        assert response.status_code == 403
        assert response.json()["message"] == "You do not have admin privileges"

        response = client.get(path, params={"id": admin_id})
        assert response.status_code == 200
        assert response.json()["success"] is True


class TestErrorStatus:

    def test_class_status_is_the_default(self):
        assert StorefrontError("boom").status_code == 500
        assert ValidationError("bad").status_code == 400
        assert ForbiddenError("no").status_code == 403

    def test_explicit_status_overrides_class_status(self):
        error = StorefrontError("Service Unavailable", status_code=503)
        assert error.status_code == 503
        assert error.to_dict() == {"success": False, "message": "Service Unavailable"}

"""Authentication and authorization.

Learn: Login and registration belong to the identity provider. This
package only verifies the JWT it issues and turns it into a
CurrentIdentity (user_id + role) for routes and WebSocket joins.
"""

"""
Inkpost API: Routes Package
=============================

HTTP route handlers. Each module owns one resource:

    - auth.py:      /api/register, /api/login, /api/user, /api/logout, /api/logout-all
    - posts.py:     /api/posts, /api/posts/{post_id}
    - comments.py:  /api/posts/{post_id}/comments[/{comment_id}]
    - users.py:     /api/users/{user_id}, /api/categories
    - health.py:    /health

Routes stay thin: read the request, call a service, wrap the result in an
envelope. Authorization and validation beyond the request schema happen in
the services.
"""

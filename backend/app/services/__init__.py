"""
Inkpost API: Services Layer
=============================

What:  Business logic between the HTTP/CLI surfaces and the database.
How:   Stateless classes exposed as module singletons. Each call receives the
       session (and the acting user where ownership matters); the caller owns
       the transaction.

Service Inventory:
    - PostService / CommentService: CRUD with policy checks and eager loading
    - UserService / CategoryService: lookups and category creation
    - AuthService: registration, login, personal access tokens
    - JobQueue: database-backed background jobs and the worker loop
    - welcome_email: dispatch rules and the send_welcome_email job handler
    - MailSender (abstract) with LogMailSender and SMTPMailSender
"""

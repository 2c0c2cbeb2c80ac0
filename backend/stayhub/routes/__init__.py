# Routes package init
"""
HTTP handlers, one router per resource. Handlers parse the request, call a
service singleton and return its response model; they hold no logic of their
own beyond choosing the session and the principal.
"""

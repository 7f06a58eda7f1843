"""
DevCamper API — Routes Package
================================

Route Inventory:
    - bootcamps.py: /api/v1/bootcamps, /api/v1/bootcamps/{id}, /api/v1/bootcamps/{id}/photo
    - courses.py:   /api/v1/courses, /api/v1/courses/{id}, /api/v1/bootcamps/{id}/courses
    - health.py:    /health

Routes stay thin: read the request, call a service, wrap the result in the
envelope. Status codes for failures come from the exception handlers.
"""

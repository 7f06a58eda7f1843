"""
DevCamper API — Services Layer
================================

Service Inventory:
    - query_builder:    ListQuery, the filter/select/sort/paginate pipeline for listings
    - BootcampService:  bootcamp CRUD, cascade delete, photo upload
    - CourseService:    course CRUD and the bootcamp average-cost aggregation
    - FileService:      upload validation and storage

Services receive the database session per call and raise exceptions from
devcamper.exceptions; they never build HTTP responses.
"""

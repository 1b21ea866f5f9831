"""Course catalog domain: courses, lessons, ordering, reads and admin writes."""

"""
Attendance and results pipeline. Routes stay glue: they parse the request,
call one of these functions and jsonify what comes back.
"""

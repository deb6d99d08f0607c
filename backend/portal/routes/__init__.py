from .base_route import base_bp
from .auth import auth_bp
from .attendance import attendance_bp
from .results import results_bp
from .notifications import notifications_bp
from .enrollments import enrollments_bp
from .courses import courses_bp
from .users import users_bp
from .teachers import teachers_bp

def register_routes(app):
    app.register_blueprint(base_bp)
    app.register_blueprint(auth_bp, url_prefix='/api/auth')
    app.register_blueprint(attendance_bp, url_prefix='/api/attendance')
    app.register_blueprint(results_bp, url_prefix='/api/results')
    app.register_blueprint(notifications_bp, url_prefix='/api/notifications')
    app.register_blueprint(enrollments_bp, url_prefix='/api/enrollments')
    app.register_blueprint(courses_bp, url_prefix='/api/courses')
    app.register_blueprint(users_bp, url_prefix='/api/users')
    app.register_blueprint(teachers_bp, url_prefix='/api/teachers')

def register_blueprints(app):
    from charter.api.auth import auth_bp
    from charter.api.tours import tours_bp
    from charter.api.fleet import fleet_bp
    from charter.api.bookings import bookings_bp
    from charter.api.reviews import reviews_bp
    from charter.api.payments import payment_bp
    from charter.api.admin import admin_bp

    for blueprint in (auth_bp, tours_bp, fleet_bp, bookings_bp, reviews_bp, payment_bp, admin_bp):
        app.register_blueprint(blueprint)

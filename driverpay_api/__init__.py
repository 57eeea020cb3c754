import click
from flask import Flask
from flask_cors import CORS
from flask_jwt_extended import JWTManager

from driverpay_api.config import AppConfig
from driverpay_api.extensions import db, init_db
from driverpay_api.common.errors import register_error_handlers
from driverpay_api.models import load_all

jwt = JWTManager()


def create_app(config: AppConfig | None = None):
    """Application factory. `config` defaults to AppConfig.from_env()."""
    cfg = config or AppConfig.from_env()

    app = Flask(__name__)
    app.config["JWT_SECRET_KEY"] = cfg.jwt_secret_key
    app.config["JWT_ACCESS_TOKEN_EXPIRES"] = cfg.jwt_access_token_expires
    app.config["JWT_DECODE_LEEWAY"] = 120  # 2 minutes grace for clock skew
    app.config["APP_CONFIG"] = cfg
    app.config["ENGINE_CONFIG"] = cfg.engine
    app.logger.setLevel(cfg.log_level)

    CORS(app, resources={r"/api/*": {"origins": cfg.cors_origins}})

    # Extensions
    init_db(app, cfg.database_url)
    register_error_handlers(app)
    jwt.init_app(app)

    # Ensure models are loaded so metadata is complete
    with app.app_context():
        load_all()

    # Blueprints
    from driverpay_api.blueprints.health import bp as health_bp
    from driverpay_api.blueprints.compensation import bp as compensation_bp
    from driverpay_api.blueprints.statements import bp as statements_bp

    app.register_blueprint(health_bp)
    app.register_blueprint(compensation_bp)
    app.register_blueprint(statements_bp)

    # ----------------- CLI COMMANDS -----------------

    @app.cli.command("seed-demo")
    def seed_demo():
        """Seed a dispatcher, two drivers, rates, routes and one invoice."""
        from datetime import date, timedelta
        from decimal import Decimal
        from driverpay_api.models.driver import Dispatcher, Driver
        from driverpay_api.models.invoice import DailyPayQty, Invoice, InvoiceWeeklyPay
        from driverpay_api.models.rates import DriverRate
        from driverpay_api.models.route import Route

        disp = Dispatcher.query.filter_by(name="Demo Dispatch").first()
        if not disp:
            disp = Dispatcher(name="Demo Dispatch", contact_email="dispatch@demo.local", active=True,
                              driver_parcel_rate=Decimal("0.85"), default_deduction_rate=Decimal("15.00"),
                              admin_commission_per_parcel=Decimal("0.05"))
            db.session.add(disp)
            db.session.commit()

        def ensure_driver(email, name, operator_id):
            d = Driver.query.filter_by(email=email).first()
            if not d:
                d = Driver(email=email, name=name, operator_id=operator_id)
                db.session.add(d)
                db.session.commit()
            return d

        alice = ensure_driver("alice@demo.local", "Alice Demo", "OP-1001")
        bob = ensure_driver("bob@demo.local", "Bob Demo", "OP-1002")

        today = date.today()
        start = today - timedelta(days=today.weekday() + 7)
        end = start + timedelta(days=6)

        for op in ("OP-1001", "OP-1002"):
            if not DriverRate.query.filter_by(operator_id=op).first():
                db.session.add(DriverRate(operator_id=op, rate=Decimal("0.85"), effective_date=start - timedelta(days=30)))

        if not Route.query.filter_by(driver_id=alice.id).first():
            for i in range(5):
                db.session.add(Route(driver_id=alice.id, dispatcher_id=disp.id, scheduled_date=start + timedelta(days=i),
                                     status="completed", parcel_count_total=25, parcels_delivered=24,
                                     carrier_rate_per_parcel=Decimal("0.85")))

        inv_no = f"INV-{start:%Y%m%d}"
        if not Invoice.query.filter_by(invoice_number=inv_no).first():
            db.session.add(Invoice(invoice_number=inv_no, invoice_date=end + timedelta(days=1),
                                   period_start=start, period_end=end))
            db.session.flush()
            for d, op in ((alice, "OP-1001"), (bob, "OP-1002")):
                db.session.add(InvoiceWeeklyPay(invoice_number=inv_no, operator_id=op, tour="T1", delivered_qty=120))
                for i in range(5):
                    db.session.add(DailyPayQty(invoice_number=inv_no, working_day=start + timedelta(days=i),
                                               operator_id=op, tour="T1", total_qty=24))
        db.session.commit()
        click.echo(f"Seeded: dispatcher '{disp.name}'; drivers {alice.email}, {bob.email}; invoice {inv_no}")

    @app.cli.group("payslips")
    def payslips_group():
        """Invoice payslip utilities."""
        pass

    @payslips_group.command("generate")
    @click.option("--invoice", "invoice_number", default=None, help="Invoice number (default: all invoices)")
    @click.option("--by", "generated_by", default="cli", help="Recorded as generated_by")
    def payslips_generate(invoice_number, generated_by):
        """Run the invoice payslip batch outside HTTP."""
        from driverpay_api.common.errors import APIError
        from driverpay_api.services.invoice_payslips import InvoicePayslipGenerator

        try:
            res = InvoicePayslipGenerator(cfg.engine).run(invoice_number, generated_by=generated_by)
        except APIError as e:
            raise click.ClickException(e.message)
        for p in res.payslips:
            action = "updated" if p["updated"] else "created"
            click.echo(f"{action}: driver {p['driver_id']} invoice {p['invoice_number']} net {p['net_pay']}")
        for w in res.warnings:
            click.echo(f"warning: {w}", err=True)
        click.echo(f"{res.generated} payslip(s) generated")

    return app

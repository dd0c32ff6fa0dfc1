import unittest
from flask import Flask

from ferreteria.extensions import db
from ferreteria.models import ActionLog, AccountingRecord, User
from ferreteria.services import accounting_service, user_service
from ferreteria.services.user_service import UserNotFoundError
from ferreteria.validation import ConflictError, ValidationError


class UserServiceTests(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls.app = Flask(__name__)
        cls.app.config.update(
            SECRET_KEY="test",
            SQLALCHEMY_DATABASE_URI="sqlite:///:memory:",
            SQLALCHEMY_TRACK_MODIFICATIONS=False,
            TESTING=True,
        )
        db.init_app(cls.app)
        cls.ctx = cls.app.app_context()
        cls.ctx.push()
        from ferreteria import models  # noqa: F401
        db.create_all()

    @classmethod
    def tearDownClass(cls):
        db.session.remove()
        db.drop_all()
        cls.ctx.pop()

    def setUp(self):
        db.session.query(ActionLog).delete()
        db.session.query(AccountingRecord).delete()
        db.session.query(User).delete()
        db.session.commit()

        self.manager = user_service.create_user(
            full_name="Lucho", email="lucho@donlucho.cl", role="gerente", actor_user_id=None
        )

    def test_create_normalizes_email(self):
        user = user_service.create_user(
            full_name="Marta", email="  Marta@DonLucho.CL ", role="contador", actor_user_id=self.manager.id
        )
        self.assertEqual(user.email, "marta@donlucho.cl")
        self.assertTrue(user.is_active)

    def test_create_rejects_unknown_role(self):
        with self.assertRaises(ValidationError):
            user_service.create_user(full_name="X", email="x@x.cl", role="admin", actor_user_id=None)

    def test_create_rejects_duplicate_email(self):
        with self.assertRaises(ConflictError):
            user_service.create_user(full_name="Otro", email="LUCHO@donlucho.cl", role="cajero", actor_user_id=None)

    def test_set_and_remove_role_are_logged(self):
        user = user_service.create_user(full_name="Pía", email="pia@donlucho.cl", role="cajero", actor_user_id=None)

        user_service.set_role(user_id=user.id, role="bodeguero", actor_user_id=self.manager.id)
        user_service.remove_role(user_id=user.id, actor_user_id=self.manager.id)

        self.assertIsNone(db.session.get(User, user.id).role)
        actions = [
            (e.action, e.details)
            for e in db.session.query(ActionLog).filter_by(entity_id=user.id).order_by(ActionLog.id)
        ]
        self.assertEqual(actions[-2:], [
            ("Cambiar rol", {"from": "cajero", "to": "bodeguero"}),
            ("Eliminar rol", {"from": "bodeguero"}),
        ])

    def test_cannot_remove_own_role(self):
        with self.assertRaises(ConflictError):
            user_service.remove_role(user_id=self.manager.id, actor_user_id=self.manager.id)

    def test_missing_user(self):
        with self.assertRaises(UserNotFoundError):
            user_service.set_role(user_id=424242, role="cajero", actor_user_id=None)

    def test_count_users(self):
        self.assertEqual(user_service.count_users(), 1)

    def test_accounting_record_logged_with_actor(self):
        record = accounting_service.create_record(
            patch={"description": "Arriendo", "amount_cents": 350000, "record_type": "egreso", "category": "Local"},
            user_id=self.manager.id,
        )
        self.assertEqual(record.user_id, self.manager.id)
        self.assertEqual(accounting_service.summary()["balance_cents"], -350000)
        entry = db.session.query(ActionLog).filter_by(entity_type="accounting_record").one()
        self.assertEqual(entry.details, {"amount_cents": 350000, "record_type": "egreso"})


if __name__ == "__main__":
    unittest.main()

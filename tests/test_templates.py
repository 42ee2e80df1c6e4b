"""Tests for app.services.templates: rendering, validation, the source chain and the store."""

import unittest
import uuid

from app.core.errors import ConflictError, NotFoundError
from app.schemas.email_template import EmailTemplateCreate, EmailTemplateUpdate, TemplateVariable
from app.services import templates
from app.services.templates import (
    BuiltinTemplateSource,
    ChainedTemplateSource,
    DatabaseTemplateSource,
    TemplateContent,
    TemplateRenderError,
    render_content,
    validate_templates,
)
from tests.support import DatabaseTestCase, RecordingSender


def _content(subject="Hi {{ Name }}", html="<p>{{ Name }}</p>", text="Hello {{ Name }}") -> TemplateContent:
    return TemplateContent(name="greeting", subject=subject, html_template=html, text_template=text)


def _create_body(**overrides) -> EmailTemplateCreate:
    values = {
        "name": "welcome",
        "subject": "Welcome, {{ Name }}",
        "html_template": "<h1>Hello {{ Name }}</h1>",
        "text_template": "Hello {{ Name }}",
        "variables": [TemplateVariable(name="Name", description="Display name")],
    }
    values.update(overrides)
    return EmailTemplateCreate(**values)


class TestRenderContent(unittest.TestCase):
    def test_html_is_escaped_but_text_and_subject_are_not(self) -> None:
        rendered = render_content(_content(), {"Name": "<b>Bob & Co</b>"})
        self.assertEqual(rendered.html_content, "<p>&lt;b&gt;Bob &amp; Co&lt;/b&gt;</p>")
        self.assertEqual(rendered.text_content, "Hello <b>Bob & Co</b>")
        self.assertEqual(rendered.subject, "Hi <b>Bob & Co</b>")

    def test_missing_variable_renders_empty(self) -> None:
        rendered = render_content(_content(), {})
        self.assertEqual(rendered.text_content, "Hello ")
        self.assertEqual(rendered.html_content, "<p></p>")

    def test_syntax_error(self) -> None:
        with self.assertRaises(TemplateRenderError) as ctx:
            render_content(_content(html="<p>{{ Name </p>"), {"Name": "x"})
        self.assertTrue(ctx.exception.message.startswith("Invalid template syntax:"))

    def test_sandbox_blocks_attribute_escapes(self) -> None:
        with self.assertRaises(TemplateRenderError):
            render_content(_content(text="{{ Name.__class__.__mro__ }}"), {"Name": "x"})

    def test_validate_templates_uses_placeholders(self) -> None:
        validate_templates("<p>{{ A }}</p>", "{{ A }}", {"A": "test_value"}, subject="{{ A }}")
        with self.assertRaises(TemplateRenderError):
            validate_templates("<p>{% if %}</p>", "ok", {})

    def test_evaluation_error_is_a_render_error(self) -> None:
        with self.assertRaises(TemplateRenderError) as ctx:
            validate_templates("<p>{{ 1 / 0 }}</p>", "text", {})
        self.assertTrue(ctx.exception.message.startswith("Template failed to render:"))


class TestSourceChain(unittest.TestCase):
    def test_first_source_that_resolves_wins(self) -> None:
        primary = BuiltinTemplateSource({"greeting": _content(text="primary {{ Name }}")})
        fallback = BuiltinTemplateSource({"greeting": _content(text="fallback {{ Name }}")})
        rendered = ChainedTemplateSource([primary, fallback]).render("greeting", {"Name": "A"})
        self.assertEqual(rendered.text_content, "primary A")

    def test_broken_template_falls_through(self) -> None:
        broken = BuiltinTemplateSource({"greeting": _content(text="{% for %}")})
        fallback = BuiltinTemplateSource({"greeting": _content(text="fallback {{ Name }}")})
        rendered = ChainedTemplateSource([broken, fallback]).render("greeting", {"Name": "A"})
        self.assertEqual(rendered.text_content, "fallback A")

    def test_template_failing_at_evaluation_falls_through(self) -> None:
        broken = BuiltinTemplateSource(
            {"greeting": _content(text="{{ 1 // (Name|length - 1) }}")}
        )
        fallback = BuiltinTemplateSource({"greeting": _content(text="fallback {{ Name }}")})
        rendered = ChainedTemplateSource([broken, fallback]).render("greeting", {"Name": "A"})
        self.assertEqual(rendered.text_content, "fallback A")

    def test_all_broken_raises_last_error(self) -> None:
        broken = BuiltinTemplateSource({"greeting": _content(text="{% for %}")})
        with self.assertRaises(TemplateRenderError):
            ChainedTemplateSource([broken]).render("greeting", {})

    def test_unknown_name(self) -> None:
        with self.assertRaises(NotFoundError):
            ChainedTemplateSource([BuiltinTemplateSource({})]).render("nope", {})

    def test_builtin_password_reset(self) -> None:
        rendered = BuiltinTemplateSource().get("password_reset")
        self.assertIsNotNone(rendered)
        out = render_content(rendered, {"ResetURL": "https://app/reset", "CompanyName": "Acme"})
        self.assertIn("https://app/reset", out.text_content)
        self.assertIn("Acme", out.html_content)


class TestDatabaseSource(DatabaseTestCase):
    def test_inactive_or_deleted_template_falls_back_to_builtin(self) -> None:
        stored = templates.get_active_template_by_name(self.db, "password_reset")
        templates.update_template(
            self.db, stored.id, EmailTemplateUpdate(subject="Custom subject")
        )
        chain = templates.default_template_source(self.db)
        variables = {"ResetURL": "u", "CompanyName": "c"}
        self.assertEqual(chain.render("password_reset", variables).subject, "Custom subject")

        templates.update_template(self.db, stored.id, EmailTemplateUpdate(is_active=False))
        self.assertIsNone(DatabaseTemplateSource(self.db).get("password_reset"))
        self.assertEqual(chain.render("password_reset", variables).subject, "Reset Your Password")

        templates.delete_template(self.db, stored.id)
        self.assertEqual(chain.render("password_reset", variables).subject, "Reset Your Password")


class TestTemplateStore(DatabaseTestCase):
    def test_create_get_list(self) -> None:
        created = templates.create_template(self.db, _create_body())
        fetched = templates.get_template(self.db, created.id)
        self.assertEqual(fetched.variable_names, ["Name"])
        names = [t.name for t in templates.list_templates(self.db)]
        self.assertEqual(names, ["password_reset", "welcome"])

    def test_create_with_bad_syntax_rejected(self) -> None:
        with self.assertRaises(TemplateRenderError):
            templates.create_template(self.db, _create_body(html_template="{{ Name "))
        self.assertEqual([t.name for t in templates.list_templates(self.db)], ["password_reset"])

    def test_duplicate_name(self) -> None:
        templates.create_template(self.db, _create_body())
        with self.assertRaises(ConflictError) as ctx:
            templates.create_template(self.db, _create_body())
        self.assertEqual(ctx.exception.message, "Template with this name already exists")

    def test_update_revalidates_bodies(self) -> None:
        created = templates.create_template(self.db, _create_body())
        with self.assertRaises(TemplateRenderError):
            templates.update_template(
                self.db, created.id, EmailTemplateUpdate(text_template="{% endif %}")
            )
        self.assertEqual(templates.get_template(self.db, created.id).text_template, "Hello {{ Name }}")

    def test_soft_delete(self) -> None:
        created = templates.create_template(self.db, _create_body())
        template_id = created.id
        templates.delete_template(self.db, template_id)
        with self.assertRaises(NotFoundError):
            templates.get_template(self.db, template_id)

    def test_preview_and_variables(self) -> None:
        created = templates.create_template(self.db, _create_body())
        rendered = templates.preview_template(self.db, created.id, {"Name": "Ada"})
        self.assertEqual(rendered.subject, "Welcome, Ada")
        self.assertEqual(rendered.html_content, "<h1>Hello Ada</h1>")
        self.assertEqual(
            templates.get_template_variables(self.db, created.id),
            [{"name": "Name", "description": "Display name"}],
        )

    def test_send_test_email(self) -> None:
        created = templates.create_template(self.db, _create_body())
        sender = RecordingSender()
        templates.send_test_email(self.db, created.id, "qa@example.com", {"Name": "QA"}, sender)
        self.assertEqual(len(sender.sent), 1)
        self.assertEqual(sender.sent[0][0], "qa@example.com")
        self.assertEqual(sender.sent[0][1].text_content, "Hello QA")

    def test_unknown_template(self) -> None:
        with self.assertRaises(NotFoundError):
            templates.preview_template(self.db, uuid.uuid4(), {})


if __name__ == "__main__":
    unittest.main()

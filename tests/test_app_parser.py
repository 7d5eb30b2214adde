import pytest
from dataclasses import replace
from datetime import date
from unittest.mock import patch

from listing_intel.keywords import extract_keywords, metadata_from_record
from listing_intel.models import AppFeature, AppSupport
from listing_intel.parsers import parse_app_page
from listing_intel.parsers.app_parser import extract_plan_name, group_features
from listing_intel.text_utils import tokenize


def test_parse_app_page_full_listing(app_page_html):
    """
    Parses every field of a complete listing.
    """
    record = parse_app_page(app_page_html, "formful")

    assert record.app_slug == "formful"
    assert record.app_name == "Formful Form Builder"
    assert record.icon_url == "https://cdn.example.com/formful.png"
    assert record.app_introduction == "Custom forms and surveys for every store"
    assert record.app_details.startswith("Formful lets merchants build contact forms")
    assert record.seo_title == "Formful - Form Builder | Shopify App Store"
    assert record.seo_meta_description == "Build forms fast."
    assert record.features == ["Drag and drop form builder", "Conditional logic fields"]
    assert record.pricing == "Free to install"
    assert record.average_rating == 4.8
    assert record.rating_count == 1234
    assert record.launched_date == date(2021, 3, 5)
    assert record.demo_store_url == "https://demo.formful.io"
    assert record.languages == ["English", "French", "German"]
    assert record.integrations == ["Klaviyo", "Mailchimp"]
    assert record.parse_warnings == []


def test_developer_skips_navigation_links(app_page_html):
    """
    The partner link inside the site menu is not the developer.
    """
    record = parse_app_page(app_page_html, "formful")

    assert record.developer.name == "Formful Inc"
    assert record.developer.url == "https://apps.shopify.com/partners/formful-inc"
    assert record.developer.website == "https://formful.io"
    assert record.support == AppSupport(email="help@formful.io", portal_url="https://help.formful.io")


def test_categories_grouped_by_handle_segment(app_page_html):
    """
    Features are grouped per category, then per handle segment.
    Categories without a plain title link are labelled "Unknown".
    """
    record = parse_app_page(app_page_html, "formful")

    assert [(c.title, c.type) for c in record.categories] == [
        ("Forms", "primary"),
        ("Unknown", "secondary"),
    ]

    forms = record.categories[0]
    assert forms.url == "https://apps.shopify.com/categories/forms-surveys"
    assert [g.title for g in forms.subcategories] == ["Form Types", "Customization"]
    assert [f.title for f in forms.subcategories[0].features] == ["Contact form", "Survey"]
    assert forms.subcategories[0].features[0].feature_handle == "cf.forms.form_types.contact"

    popups = record.categories[1]
    assert [g.title for g in popups.subcategories] == ["General"]
    assert popups.subcategories[0].features[0].feature_handle == "legacy"


def test_pricing_plans(app_page_html):
    record = parse_app_page(app_page_html, "formful")

    free, pro = record.pricing_plans
    assert free.name == "Free"
    assert free.price is None
    assert free.features == ["100 submissions/month", "Basic fields"]

    assert pro.name == "Pro"
    assert pro.price == 19.99
    assert pro.period == "month"
    assert pro.yearly_price == 199.0
    assert pro.discount_text == "save 17%"
    assert pro.trial_text == "14-day free trial"
    assert pro.features == ["Unlimited submissions"]


def test_pricing_plan_features_without_list_markup():
    """
    Cards without <li> items fall back to splitting the card text.
    """
    html = """
    <html><body>
      <div class="app-details-pricing-plan-card">
        <p>Starter</p><p>$9.99 / month</p><p>Free shipping rules</p><p>Email support</p>
      </div>
    </body></html>
    """
    plan = parse_app_page(html, "shipper").pricing_plans[0]

    assert plan.name == "Starter"
    assert plan.price == 9.99
    assert plan.features == ["Free shipping rules", "Email support"]


def test_missing_pricing_section_only_affects_pricing(app_page_html):
    """
    Removing the pricing cards leaves every other field unchanged.
    """
    without_pricing = app_page_html.split("<h2>Pricing</h2>")[0] + "</body></html>"

    full = parse_app_page(app_page_html, "formful")
    degraded = parse_app_page(without_pricing, "formful")

    assert degraded.pricing_plans == []
    assert degraded.pricing == ""
    assert degraded == replace(full, pricing_plans=[], pricing="")


def test_failing_extractor_is_isolated(app_page_html):
    """
    An extractor that raises yields its default and a diagnostic;
    the rest of the record is still populated.
    """
    with patch(
        "listing_intel.parsers.app_parser._parse_pricing_plans",
        side_effect=RuntimeError("layout changed"),
    ):
        record = parse_app_page(app_page_html, "formful")

    assert record.pricing_plans == []
    assert record.app_name == "Formful Form Builder"
    assert len(record.categories) == 2
    assert len(record.parse_warnings) == 1
    warning = record.parse_warnings[0]
    assert warning.field == "pricingPlans"
    assert warning.slug == "formful"
    assert "layout changed" in warning.error


def test_implausible_rating_falls_back_to_default():
    html = """
    <html><head><script type="application/ld+json">
    {"@type": "SoftwareApplication", "name": "Odd", "aggregateRating": {"ratingValue": 7, "ratingCount": 3}}
    </script></head><body></body></html>
    """
    record = parse_app_page(html, "odd")

    assert record.average_rating is None
    assert record.rating_count == 3
    assert [w.field for w in record.parse_warnings] == ["averageRating"]


def test_name_falls_back_to_heading_then_slug():
    """
    Unreadable JSON-LD is skipped; the h1 is used, then the slug.
    """
    with_heading = '<html><head><script type="application/ld+json">{not json</script></head><body><h1>Quizly</h1></body></html>'
    assert parse_app_page(with_heading, "quizly").app_name == "Quizly"

    assert parse_app_page("<html><body></body></html>", "quizly").app_name == "quizly"


def test_near_empty_page_returns_defaults():
    record = parse_app_page("<html><body></body></html>", "ghost")

    assert record.app_introduction == ""
    assert record.features == []
    assert record.categories == []
    assert record.pricing_plans == []
    assert record.support is None
    assert record.launched_date is None
    assert record.parse_warnings == []


def test_introduction_from_older_layout():
    """
    Without #app-details the first qualifying h2 after the gallery is used.
    """
    html = """
    <html><body>
      <h2>Featured images gallery</h2>
      <h2>Pricing</h2>
      <h2>Quizzes that turn browsers into buyers</h2>
    </body></html>
    """
    assert parse_app_page(html, "quizly").app_introduction == "Quizzes that turn browsers into buyers"


def test_parsing_is_idempotent(app_page_html):
    assert parse_app_page(app_page_html, "formful") == parse_app_page(app_page_html, "formful")


def test_group_features_custom_segment():
    features = [
        AppFeature(title="Popup", url="", feature_handle="cf.marketing.popups"),
        AppFeature(title="Bar", url="", feature_handle="cf.marketing.bars"),
        AppFeature(title="Old", url="", feature_handle="flat"),
    ]

    groups = group_features(features, segment=1)

    assert [g.title for g in groups] == ["Marketing", "General"]
    assert [f.title for f in groups[0].features] == ["Popup", "Bar"]


@pytest.mark.parametrize("text,expected", [
    ("Professional $49 / month", "Professional"),
    ("Pro $19 / month", "Pro"),
    ("Growth, $29 / month", "Growth"),
])
def test_extract_plan_name(text, expected):
    assert extract_plan_name(text) == expected


def test_inline_markup_keeps_word_spacing():
    """
    Text split across inline tags keeps the spaces written in the markup.
    """
    html = """
    <html><body>
      <h1>Acme <em>Forms</em></h1>
      <div id="app-details">
        <h2>Custom <strong>forms</strong> and surveys</h2>
        <p class="tw-hidden lg:tw-block">Build <a href="#">contact forms</a>, polls and <em>quizzes</em> without code.</p>
        <ul class="tw-list-disc"><li>Drag and <b>drop</b> builder</li></ul>
      </div>
      <a href="/partners/acme-labs"><span>Acme</span> <span>Labs</span></a>
    </body></html>
    """
    record = parse_app_page(html, "acme-forms")

    assert record.app_name == "Acme Forms"
    assert record.app_introduction == "Custom forms and surveys"
    assert record.app_details == "Build contact forms, polls and quizzes without code."
    assert record.features == ["Drag and drop builder"]
    assert record.developer.name == "Acme Labs"

    keywords = {kw.keyword for kw in extract_keywords(metadata_from_record(record))}
    assert "forms" in keywords
    assert "customforms" not in tokenize(record.app_introduction)


def test_last_website_and_demo_links_win():
    html = """
    <html><body>
      <a href="https://old.example.com">Website</a>
      <a href="https://demo-old.example.com">View demo store</a>
      <section id="adp-developer">
        <a href="https://acme.example.com">Website</a>
        <a href="https://demo.example.com">Demo store</a>
      </section>
    </body></html>
    """
    record = parse_app_page(html, "acme")

    assert record.developer.website == "https://acme.example.com"
    assert record.demo_store_url == "https://demo.example.com"

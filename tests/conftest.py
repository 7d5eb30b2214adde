import pytest

APP_PAGE_HTML = """
<html>
<head>
  <title>Formful - Form Builder | Shopify App Store</title>
  <meta name="description" content="Build forms fast.">
  <script type="application/ld+json">
  {"@context": "https://schema.org", "@type": "SoftwareApplication", "name": "Formful Form Builder",
   "image": "https://cdn.example.com/formful.png",
   "aggregateRating": {"@type": "AggregateRating", "ratingValue": 4.8, "ratingCount": 1234}}
  </script>
</head>
<body>
  <nav class="megamenu-component">
    <a href="/partners/shopify">Shopify</a>
    <a href="/categories/marketing">Marketing</a>
  </nav>
  <h1>Formful</h1>
  <div id="app-details">
    <h2>Custom forms and surveys for every store</h2>
    <p class="tw-hidden lg:tw-block">Formful lets merchants build contact forms, surveys and quizzes without code.</p>
    <ul class="tw-list-disc">
      <li>Drag and drop form builder</li>
      <li>Conditional logic fields</li>
    </ul>
  </div>
  <section id="adp-developer" data-developer-support-email="help@formful.io">
    <a href="/partners/formful-inc">Formful Inc</a>
    <a href="https://formful.io">Website</a>
    <a href="https://help.formful.io">Support portal</a>
  </section>
  <a href="https://demo.formful.io">View demo store</a>
  <div><p>Launched</p><p>March 5, 2021 · <a href="/formful/changelog">Changelog</a></p></div>
  <div><p>Languages</p><p>English, French, German</p></div>
  <div><p>Works with</p><p>Klaviyo, Mailchimp</p></div>
  <div>
    <p>Categories</p>
    <a href="/categories/forms-surveys?surface_type=app_details">Forms</a>
    <a href="/categories/forms-surveys/all?feature_handles%5B%5D=cf.forms.form_types.contact">Contact form</a>
    <a href="/categories/forms-surveys/all?feature_handles%5B%5D=cf.forms.form_types.survey">Survey</a>
    <a href="/categories/forms-surveys/all?feature_handles%5B%5D=cf.forms.customization.styles">Custom styles</a>
    <a href="/categories/popups/all?feature_handles%5B%5D=legacy">Exit intent</a>
  </div>
  <h2>Pricing</h2>
  <div class="app-details-pricing-plan-card">
    <p>Free</p><p>Free to install</p>
    <ul><li>100 submissions/month</li><li>Basic fields</li></ul>
  </div>
  <div class="app-details-pricing-plan-card">
    <p>Pro</p><p>$19.99 / month</p><p>or $199 / year (save 17%)</p><p>14-day free trial</p>
    <ul><li>Unlimited submissions</li></ul>
  </div>
</body>
</html>
"""

CATEGORY_PAGE_HTML = """
<html>
<head><meta name="description" content="Find the best apps for forms."></head>
<body>
  <nav class="navbar">
    <a href="/categories/forms-navigation?surface_detail=nav">Navigation link</a>
  </nav>
  <a href="/categories/store-design?surface_type=category">Store design</a>
  <h1>Forms apps</h1>
  <p>Collect leads and feedback.</p>
  <span>1,204 apps</span>
  <a href="/categories/forms-contact-forms?surface_detail=forms">Contact forms apps
     Let customers reach you</a>
  <a href="/categories/forms-contact-forms?surface_detail=forms&amp;ref=2">Contact forms</a>
  <a href="/categories/other-thing?surface_detail=forms">Other thing</a>
  <a href="/categories/forms/all?surface_detail=forms">View all</a>

  <div data-controller="app-card"
       data-app-card-handle-value="formful"
       data-app-card-name-value="Formful"
       data-app-card-icon-url-value="https://cdn.example.com/formful.png"
       data-app-card-app-link-value="https://apps.shopify.com/formful?surface_type=category_ad"
       data-app-card-intra-position-value="1">
    <div class="tw-text-fg-secondary tw-text-body-xs">Forms and surveys made simple</div>
    <span>4.9 out of 5 stars</span><span>(2,121)</span><span>2121 total reviews</span>
    <span class="tw-overflow-hidden tw-whitespace-nowrap tw-text-ellipsis">Free plan available</span>
    <div class="built-for-shopify-badge">Built for Shopify</div>
  </div>

  <div data-controller="app-card"
       data-app-card-handle-value="formful"
       data-app-card-name-value="Formful"
       data-app-card-app-link-value="https://apps.shopify.com/formful?surface_type=category"
       data-app-card-intra-position-value="3">
    <span>4.9 out of 5 stars</span><span>(2,121)</span><span>2121 total reviews</span>
  </div>

  <div data-controller="app-card"
       data-app-card-handle-value="quizly"
       data-app-card-name-value="Quizly"
       data-app-card-icon-url-value="https://cdn.example.com/quizly.png"
       data-app-card-app-link-value="https://apps.shopify.com/quizly?surface_type=category"
       data-app-card-intra-position-value="2">
    <p>Product quizzes that convert</p>
    <span>4.5 out of 5 stars</span> <span>87 total reviews</span>
    <span class="tw-overflow-hidden tw-whitespace-nowrap tw-text-ellipsis">無料プランあり</span>
  </div>

  <a rel="next" href="/categories/forms?page=2">Next</a>
</body>
</html>
"""


@pytest.fixture
def app_page_html() -> str:
    return APP_PAGE_HTML


@pytest.fixture
def category_page_html() -> str:
    return CATEGORY_PAGE_HTML

import pytest

from tc_dedup.data.models import Step, TestCase

LOGIN_STEPS = [
    ("Open the login page", "Login form is shown"),
    ("Enter a valid username and password", "Credentials are accepted"),
    ("Click the Sign In button", "Dashboard is displayed"),
    ("Click the avatar menu", "Profile options appear"),
]

SEARCH_STEPS = [
    ("Type a product name into the search bar", "Suggestions are listed"),
    ("Press Enter", "Results page opens"),
    ("Apply the price filter", "Results are narrowed"),
    ("Sort by rating", "Highest rated items first"),
]

UPLOAD_STEPS = [
    ("Open the documents tab", "Document list loads"),
    ("Choose a PDF file to upload", "File picker closes"),
    ("Confirm the upload", "Progress bar completes"),
    ("Refresh the document list", "New file appears"),
]

# Shares three of four steps with UPLOAD_STEPS: 75% similar
UPLOAD_VARIANT_STEPS = UPLOAD_STEPS[:3] + [
    ("Delete the uploaded file", "File is removed from list"),
]

CHECKOUT_ADMIN_STEPS = [
    ("Open the app as Admin", "Home screen is shown"),
    ("Open the cart", "Cart items are listed"),
    ("Tap Checkout", "Payment form opens"),
    ("Enter card details", "Card is validated"),
    ("Confirm the order", "Order confirmation is displayed"),
]

CHECKOUT_GUEST_STEPS = [("Open the app as Guest", "Home screen is shown")] + CHECKOUT_ADMIN_STEPS[1:]

UNRELATED_STEPS = [
    ("Enable airplane mode", "Network icon disappears"),
    ("Rotate the device", "Layout switches orientation"),
]


def build_case(key, steps, automation="manual", title="", last_modified=None, case_id=None):
    """TestCase from (action, expected) tuples or plain action strings, indexed from 1."""
    parsed = []
    for position, step in enumerate(steps, 1):
        if isinstance(step, str):
            step = (step, "")
        parsed.append(Step(index=position, action=step[0], expected_result=step[1]))
    return TestCase(
        key=key,
        title=title,
        id=case_id,
        automation_state=automation,
        steps=parsed,
        last_modified=last_modified,
    )


@pytest.fixture
def make_case():
    return build_case


@pytest.fixture
def checkout_pair():
    return [
        build_case("TC-1", CHECKOUT_ADMIN_STEPS, automation="automated", title="Checkout an order"),
        build_case("TC-2", CHECKOUT_GUEST_STEPS, automation="manual", title="Checkout an order"),
    ]


@pytest.fixture
def mixed_suite():
    """Three duplicate groups (login x3, search x2, upload 75%) and one singleton."""
    return [
        build_case("L-1", LOGIN_STEPS, automation="manual", title="Sign in"),
        build_case("S-1", SEARCH_STEPS, automation="automated", title="Product search"),
        build_case("L-2", LOGIN_STEPS, automation="automated", title="Sign in"),
        build_case("U-1", UPLOAD_STEPS, automation="manual", title="Upload document"),
        build_case("X-1", UNRELATED_STEPS, automation="manual", title="Device settings"),
        build_case("L-3", LOGIN_STEPS, automation="manual", title="Sign in"),
        build_case("S-2", SEARCH_STEPS, automation="manual", title="Product search"),
        build_case("U-2", UPLOAD_VARIANT_STEPS, automation="manual", title="Upload document"),
    ]

"""Localised strings for the site's pages, and language negotiation."""

from __future__ import annotations

import enum
import logging

import markdown as _markdown
from markupsafe import Markup

logger = logging.getLogger(__name__)

DEFAULT_LANGUAGE = "en"
SUPPORTED_LANGUAGES = (DEFAULT_LANGUAGE,)


class StringAsset(enum.IntEnum):
    """Keys used to look up a localised string."""

    CompanyDescriptionMsg = 0
    ThePrivacyCompany = enum.auto()
    ShareYourLocation = enum.auto()
    LocationDescriptionMsg = enum.auto()
    SafeAndSecure = enum.auto()
    SafeDescriptionMsg = enum.auto()
    TrustedDescriptionMsg = enum.auto()
    OnlyAddTrustedFriends = enum.auto()
    ZoodLocationBlurbMsg = enum.auto()
    ItsAboutPrivacy = enum.auto()
    Really = enum.auto()
    AboutPrivacyMsg = enum.auto()
    ZoodIsDifferent = enum.auto()
    AboutDifferentMsg = enum.auto()
    DidWeMentionTheEncryptionInterrogative = enum.auto()
    AboutEncryptionMsg = enum.auto()
    LotsOfServicesSecureQuestionMsg = enum.auto()
    LotsOfServicesSecureAnswerMsg = enum.auto()
    WhenZoodLocationIosQuestionMsg = enum.auto()
    WhenZoodLocationIosAnswerMsg = enum.auto()
    IfYouDontSurveilQuestionMsg = enum.auto()
    IfYouDontSurveilAnswerMsg = enum.auto()
    HowDoISubmitQuestionMsg = enum.auto()
    HowDoISubmitAnswerMsg = enum.auto()
    GetInTouchWithUs = enum.auto()
    GetInTouchWithUsMsg = enum.auto()
    ContactFormErrorMissingNameMsg = enum.auto()
    ContactFormErrorMissingEmailMsg = enum.auto()
    ContactFormErrorMissingMessageMsg = enum.auto()
    ContactFormErrorUnknownMsg = enum.auto()
    MobileAppsPrivacyPolicy = enum.auto()
    MobileAppsPrivacyPolicyMsg = enum.auto()
    StuffWeKnowAboutYou = enum.auto()
    StuffWeKnowAboutYouMsg = enum.auto()
    StuffWeBackupForYou = enum.auto()
    StuffWeBackupForYouMsg = enum.auto()
    WhosBehindZoodInterrogative = enum.auto()


_A = StringAsset

# Values are plain strings (escaped when rendered) or Markup (trusted HTML).
_EN_STRINGS: dict[StringAsset, str] = {
    _A.ThePrivacyCompany: "The Privacy Company",
    _A.CompanyDescriptionMsg: "Living a connected life does not require giving up your privacy. Our mission is to build products and services that are a delight to use, while also respecting your privacy.",
    _A.ShareYourLocation: "Share your location",
    _A.LocationDescriptionMsg: "With Zood Location, your family and loved ones can continuously share their location with each other, so you can make sure everyone is safe with a quick glance at your phone. No more having to text and call each person to find out where they are, and where they are headed.",
    _A.SafeAndSecure: "Safe and secure",
    _A.SafeDescriptionMsg: "With end-to-end encryption your location stays private and protected. Zood encrypts your location before it leaves your phone so it can only be decrypted by the person you're sharing with. No companies (including Zood) can view or sell your information.",
    _A.OnlyAddTrustedFriends: "Only add trusted friends",
    _A.TrustedDescriptionMsg: "Build a list of family and friends that you trust. Only people on this list will be able to view your location, and it will be safe from advertisers, rogue employees, hackers and nosy governments.",
    _A.ZoodLocationBlurbMsg: "Share your location with your loved ones, while protecting your location from everyone else.",
    _A.ItsAboutPrivacy: "It's about privacy.",
    _A.Really: "Really.",
    _A.AboutPrivacyMsg: "Zood launched in 2020 and is building apps and services for people that let them live a connected life without having to sacrifice their privacy. Most internet companies make money by collecting information about you, then selling that information and/or using it to sell your eyeballs, privacy and dignity to the highest bidder.",
    _A.ZoodIsDifferent: "Zood is different",
    _A.AboutDifferentMsg: "We don't sell your data. Our mission is simple: build apps and services that help people live their life and charge a fair price for it. We don't treat our users like eyeballs for ads or demographics to be manipulated.",
    _A.DidWeMentionTheEncryptionInterrogative: "Did we mention the encryption?",
    _A.AboutEncryptionMsg: "All Zood apps use end-to-end encryption to protect your data. Our first product, Zood Location, is now available and we're hoping to make more privacy preserving/enhancing services in the future.",
    _A.LotsOfServicesSecureQuestionMsg: 'Lots of services say they are "secure". How can I trust Zood?',
    _A.LotsOfServicesSecureAnswerMsg: Markup(
        "We use end-to-end encryption to protect your data. That means all your data is encrypted before it ever leaves your phone, so you can trust us to not sell you out. If you're so inclined, you can even <a href=\"https://github.com/zood/\">view the code</a> for yourself."
    ),
    _A.WhenZoodLocationIosQuestionMsg: "When will Zood Location be available for iOS?",
    _A.WhenZoodLocationIosAnswerMsg: "The iOS app is currently undergoing a UI overhaul to bring it to parity with the Android app, but we don't have a release date.",
    _A.IfYouDontSurveilQuestionMsg: "If you don't have advertising or use/sell user data, how will you make money?",
    _A.IfYouDontSurveilAnswerMsg: "By charging customers a modest fee to use Zood services and/or accepting sponsorships.",
    _A.HowDoISubmitQuestionMsg: "How can I give feedback about your services?",
    _A.HowDoISubmitAnswerMsg: Markup(
        'Send us an email at <a href="mailto:[email]">[email]</a>. Constructive feedback is always appreciated, but a few kind words every now and then helps us stay motivated. \U0001F60A'
    ),
    _A.GetInTouchWithUs: "Get in touch with us!",
    _A.GetInTouchWithUsMsg: "We'd like to hear what you have to say! Feedback and improvement suggestions will help us develop and make better products for you. Send us an email at ",
    _A.ContactFormErrorMissingNameMsg: "Your message didn't go through. You need to enter your name, otherwise we won't know how to address you.",
    _A.ContactFormErrorMissingEmailMsg: "Your message didn't go through. You need to enter your email address, so we can contact you if necessary.",
    _A.ContactFormErrorMissingMessageMsg: "You need to enter a message. Go back and try again.",
    _A.ContactFormErrorUnknownMsg: "Hmm\u2026 something broke while trying to send your message. Go back and try again. If the problem persists, you can always send us an email at",
    _A.MobileAppsPrivacyPolicy: "Mobile Apps Privacy Policy",
    _A.MobileAppsPrivacyPolicyMsg: "Everything we build aims to increase, or at the very least preserve, your privacy. When you use Zood Location, the information that you share with your family & friends is shared with them only using end-to-end encryption. That means we don't know anything about your location, so we can't spy on you or sell your data, and nobody can compel us to reveal your location either.",
    _A.StuffWeKnowAboutYou: "Stuff we know about you",
    _A.StuffWeKnowAboutYouMsg: "**Email Address:** Upon registering an account, you may **optionally** provide your email address. When you do so, we send you an email with a verification link to make sure we have the correct address. The email address will only be used to contact you with important information about your account. We won't send you any spam, sell your email address, or share it with any 3rd parties.",
    _A.StuffWeBackupForYou: "Stuff we backup for you",
    _A.StuffWeBackupForYouMsg: "To make it easy for you to switch phones, Zood Location sends an encrypted backup of your database of friends to our server. It's encrypted with a key derived from your password (which we also don't know), so to us it's just a blob of random data that we hold just for you.\n\nThat's it! No trickery here. Just a simple service that lets you (and only you) know where your loved ones are all the time.",
    _A.WhosBehindZoodInterrogative: "Who's behind Zood?",
}

_markdown_cache: dict[int, Markup] = {}


def _parse_accept_language(header: str) -> list[str]:
    """Return the language ranges of an Accept-Language header, best first."""
    ranked = []
    for position, part in enumerate(header.split(",")):
        fields = [f.strip() for f in part.split(";")]
        lang = fields[0].lower()
        if not lang:
            continue
        quality = 1.0
        for param in fields[1:]:
            key, _, value = param.partition("=")
            if key.strip().lower() == "q":
                try:
                    quality = float(value)
                except ValueError:
                    quality = 0.0
        if quality > 0:
            ranked.append((-quality, position, lang))
    return [lang for _, _, lang in sorted(ranked)]


def match_language(accept_language: str | None) -> str:
    """Return the best supported language for an Accept-Language header."""
    for lang in _parse_accept_language(accept_language or ""):
        primary = lang.split("-")[0]
        if primary in SUPPORTED_LANGUAGES:
            return primary
    return DEFAULT_LANGUAGE


def localized(tag: str, asset: int) -> str:
    """Return the string (or trusted Markup) for ``asset`` in language ``tag``."""
    try:
        return _EN_STRINGS[asset]
    except KeyError:
        logger.warning("no entry found for string asset '%d'", asset)
        return "<undefined>"


def markdown(tag: str, asset: int) -> Markup:
    """Return the string for ``asset`` rendered from Markdown to HTML."""
    cached = _markdown_cache.get(asset)
    if cached is not None:
        return cached

    source = _EN_STRINGS.get(asset)
    if source is None:
        logger.warning("no entry found for string asset: %d", asset)
        return Markup("&lt;undefined&gt;")

    output = Markup(_markdown.markdown(str(source)))
    _markdown_cache[asset] = output
    return output
from __future__ import annotations

from vacancy_crawler.config import VacancyPattern
from vacancy_crawler.engine import PageParser

LISTING = """
<html><body>
  <a href="/jobs/1">One</a>
  <a href="/jobs/1#apply">One again</a>
  <a href="jobs/2">Two</a>
  <a href="#top">Top</a>
  <a href="javascript:void(0)">Menu</a>
  <a href="mailto:hr@example.com">Mail</a>
  <a href="https://elsewhere.org/x">Elsewhere</a>
  <a>No href</a>
</body></html>
"""

DETAIL = """
<html><body>
  <h1 class="title">Backend developer</h1>
  <div class="company"><span>Acme BV</span></div>
  <section class="body"><p>Build   services.</p><p>Ship them.</p></section>
  <ul class="skills"><li>Python</li><li>SQL</li><li>python</li><li> </li></ul>
  <ul class="edu"><li>HBO</li></ul>
  <span class="place">Utrecht</span><span class="place">Remote</span>
</body></html>
"""


def test_extract_links_normalises_and_filters() -> None:
    links = PageParser().extract_links(LISTING, "https://jobs.example.com/list/")
    assert links == [
        "https://jobs.example.com/jobs/1",
        "https://jobs.example.com/list/jobs/2",
        "https://elsewhere.org/x",
    ]


def test_extract_vacancy_with_fallback_selectors() -> None:
    pattern = VacancyPattern(
        title=["h2.missing", "h1.title"],
        employer="div.company",
        description="section.body",
        skills="ul.skills li",
        educations="ul.edu li",
        locations="span.place",
        location="span.place",
    )
    fields = PageParser().extract_vacancy(DETAIL, pattern)

    assert fields is not None
    assert fields.title == "Backend developer"
    assert fields.employer == "Acme BV"
    assert "Build" in fields.description and "Ship them." in fields.description
    assert fields.skills == ["Python", "SQL"]
    assert fields.educations == ["HBO"]
    assert fields.locations == ["Utrecht", "Remote"]
    assert fields.location == "Utrecht"
    assert fields.employment_type is None


def test_pages_without_description_are_not_vacancies() -> None:
    pattern = VacancyPattern(description="div.description")
    assert PageParser().extract_vacancy(LISTING, pattern) is None

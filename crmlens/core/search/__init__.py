from crmlens.core.search.predicates import country_for_contact, matches, searchable_fields

__all__ = ["country_for_contact", "matches", "searchable_fields"]

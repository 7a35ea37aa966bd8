import pytest


@pytest.fixture
def document():
    return {
        "id": "123",
        "firstName": "Abinav",
        "lastName": "Ramesh",
        "dateOfBirth": "23 - July - 1988",
        "employer": "Some Company",
        "previousEmployer": "Some Other Company",
        "citiesLivedIn": ["Dubai", "AnnArbor", "Ithaca", "Houston", "Seattle"],
        "previousJobs": [
            {
                "id": "1",
                "title": "Software Engineer",
                "employer": "Some Company",
                "location": "Houston",
                "managers": ["Aristotle", "Bartholomew", "Columbus", "Alexander"],
            },
            {
                "id": "2",
                "title": "Software Engineer",
                "employer": "Some Other Company",
                "location": "Ann Arbor",
                "managers": ["Aristotle", "Bartholomew", "Columbus", "Alexander"],
            },
            {
                "id": "3",
                "title": "Software Engineer",
                "employer": "Yet Another Company",
                "location": "Ithaca",
                "managers": ["Aristotle", "Bartholomew", "Columbus", "Alexander", "Aristotle"],
            },
            {
                "id": "4",
                "title": "Software Engineer",
                "employer": "One Last Company",
                "location": "Seattle",
                "managers": ["Gates", "Bartholomew"],
            },
        ],
    }

import json
import random
import uuid

EVENT_WEIGHTS = {
    "business_listing_viewed": 50,
    "business_contact_clicked": 10,
    "business_website_clicked": 6,
    "search_performed": 15,
    "session_ended": 10,
    "business_registration_started": 5,
    "business_registration_completed": 4,
}

SOURCES = ["google", "facebook", "instagram", "newsletter", None]
SEARCH_TERMS = ["Restaurant", "hair salon", "Plumber", "african grocery", "tax advisor"]


def generate_events(num_events: int, num_businesses: int = 10, num_users: int = 200):
    business_ids = [str(uuid.uuid4()) for _ in range(num_businesses)]
    names = list(EVENT_WEIGHTS)
    weights = list(EVENT_WEIGHTS.values())

    events = []
    for _ in range(num_events):
        name = random.choices(names, weights=weights)[0]
        properties = {
            "businessId": random.choice(business_ids),
            "userId": f"user-{random.randint(1, num_users)}",
        }
        source = random.choice(SOURCES)
        if source:
            properties["source"] = source
        if name == "search_performed":
            properties["searchTerm"] = random.choice(SEARCH_TERMS)
        if name == "session_ended":
            properties["timeSpent"] = random.randint(5, 600)
        events.append({"event": name, "properties": properties})
    return {"events": events}


def main():
    data = generate_events(5000)
    with open("events.json", "w") as f:
        json.dump(data, f, indent=2)


if __name__ == "__main__":
    main()

"""
Reference data for listing forms and the demo seed catalog.
"""

CATEGORIES = [
    "Engine & Components",
    "Body Parts",
    "Headlights & Lighting",
    "Stripping",
    "Stripping for Parts",
    "Damaged Vehicles (Salvage)",
    "Electrical Systems",
    "Suspension & Steering",
    "Transmission",
    "Interior",
    "Wheels & Tyres",
]

VEHICLE_CATEGORIES = {"Damaged Vehicles (Salvage)", "Stripping", "Stripping for Parts"}

VEHICLE_MODELS = {
    "Toyota": ["Hilux", "Corolla", "Fortuner", "Quantum", "Avanza", "Etios", "Yaris", "Starlet", "Rumion", "Urban Cruiser", "Land Cruiser", "Hiace"],
    "Volkswagen": ["Polo", "Polo Vivo", "Golf", "Tiguan", "T-Cross", "Amarok", "Transporter", "Caddy", "T-Roc", "Crafter"],
    "Ford": ["Ranger", "Everest", "Figo", "EcoSport", "Fiesta", "Transit", "Tourneo", "Mustang", "F-150"],
    "Nissan": ["NP200", "NP300 Hardbody", "Navara", "Almera", "Qashqai", "X-Trail", "Magnite", "Patrol", "NV350"],
    "Hyundai": ["i10", "i20", "i30", "Creta", "Tucson", "Santa Fe", "H100 Bakkie", "H1", "Venue", "Kona"],
    "Kia": ["Picanto", "Rio", "Seltos", "Sportage", "Sorento", "K2500", "K2700", "Sonet", "Pegas"],
    "BMW": ["1 Series", "2 Series", "3 Series", "4 Series", "5 Series", "X1", "X3", "X5", "X6", "M3", "M4", "M5"],
    "Mercedes-Benz": ["A-Class", "C-Class", "E-Class", "S-Class", "GLA", "GLC", "GLE", "Sprinter", "Vito", "Actros"],
    "Isuzu": ["D-MAX", "KB Series", "MU-X", "N-Series Truck", "F-Series Truck", "FX-Series"],
    "Suzuki": ["Swift", "Jimny", "Ertiga", "Vitara Brezza", "S-Presso", "Celerio", "Baleno", "Dzire"],
    "Mazda": ["Mazda2", "Mazda3", "CX-3", "CX-5", "CX-30", "BT-50"],
    "Renault": ["Kwid", "Triber", "Kiger", "Captur", "Duster", "Megane", "Clio"],
    "Mitsubishi": ["Pajero", "Triton", "ASX", "Outlander", "Pajero Sport"],
    "Mahindra": ["Scorpio", "Thar", "XUV300", "Bolero", "Pik-Up"],
    "Haval": ["Jolion", "H6", "H6 GT"],
    "GWM": ["Steed", "P-Series"],
    "Chery": ["Tiggo 4 Pro", "Tiggo 7 Pro", "Tiggo 8 Pro"],
    "Audi": ["A1", "A3", "A4", "A5", "Q2", "Q3", "Q5", "Q7"],
    "Honda": ["Amaze", "Ballade", "Civic", "CR-V", "HR-V", "Fit"],
    "Land Rover": ["Defender", "Discovery", "Range Rover Sport", "Range Rover Evoque"],
}

MAKES = sorted(VEHICLE_MODELS)

# Catalog filter value matching any make outside MAKES
OTHER_MAKE = "Other"

COMMON_PART_NAMES = [
    "Alternator", "Brake Pads", "Brake Discs", "Radiator", "A/C Condenser",
    "Headlight (Left)", "Headlight (Right)", "Tail Light", "Front Bumper", "Rear Bumper",
    "Bonnet", "Fender", "Grille", "Engine Block", "Complete Engine",
    "Gearbox / Transmission", "Turbocharger", "Shock Absorber", "Control Arm", "Wheel Hub",
    "Air Filter", "Oil Filter", "Fuel Pump", "Starter Motor", "Car Battery",
    "Wiper Motor", "Side Mirror", "Door Handle", "Window Regulator",
]

PLACEHOLDER_IMAGE = "https://sparepartsfinder.co.za/wp-content/uploads/2023/05/Spare-Parts-Finder-Logo.png"


# -------------------- Demo seed --------------------

DEMO_SELLERS = [
    {
        "key": "premium",
        "business_name": "Premium Parts Corp",
        "contact_person": "John Doe",
        "phone": "27123456789",
        "email": "sales@premiumparts.example.com",
        "address": {"street": "123 Engine Ave", "suburb": "Industrial", "city": "Johannesburg", "province": "Gauteng", "postcode": "2001"},
    },
    {
        "key": "coastal",
        "business_name": "Coastal Strippers",
        "contact_person": "Thandi Nkosi",
        "phone": "27315550101",
        "email": "info@coastalstrippers.example.com",
        "address": {"street": "8 Harbour Rd", "suburb": "Congella", "city": "Durban", "province": "KwaZulu-Natal", "postcode": "4001"},
    },
    {
        "key": "salvage",
        "business_name": "Cape Salvage & Spares",
        "contact_person": "Pieter van Wyk",
        "phone": "27215550199",
        "email": "yard@capesalvage.example.com",
        "address": {"street": "42 Voortrekker Rd", "suburb": "Parow", "city": "Cape Town", "province": "Western Cape", "postcode": "7500"},
    },
]

DEMO_PRODUCTS = [
    {
        "seller": "premium",
        "name": "2018 BMW M3 Alternator",
        "category": "Electrical Systems",
        "make": "BMW",
        "model": "M3",
        "year_start": 2014,
        "year_end": 2020,
        "condition": "Used",
        "price": 4500.00,
        "quantity": 1,
        "sku": "BMW-ALT-101",
        "description": "Genuine BMW M3 Alternator in excellent working condition. Pulled from a low mileage donor.",
        "images": ["https://images.unsplash.com/photo-1620023846007-885721759495?auto=format&fit=crop&q=80&w=800"],
        "shipping_options": ["Collection", "Courier"],
        "location": "Johannesburg, GP",
    },
    {
        "seller": "premium",
        "name": "Mercedes-Benz C-Class (W205) LED Headlight Left",
        "category": "Headlights & Lighting",
        "make": "Mercedes-Benz",
        "model": "C-Class",
        "year_start": 2015,
        "year_end": 2021,
        "condition": "Used",
        "price": 8200.00,
        "quantity": 2,
        "sku": "MB-W205-HL-L",
        "description": "Original Mercedes LED High Performance headlight. No broken tabs, clean lens.",
        "images": ["https://images.unsplash.com/photo-1549399542-7e3f8b79c956?auto=format&fit=crop&q=80&w=800"],
        "shipping_options": ["Collection", "Courier"],
        "location": "Pretoria, GP",
    },
    {
        "seller": "coastal",
        "name": "Audi A4 (B8) 2.0 TFSI Engine (Stripping)",
        "category": "Stripping for Parts",
        "make": "Audi",
        "model": "A4",
        "year_start": 2008,
        "year_end": 2016,
        "condition": "Used",
        "price": 22000.00,
        "quantity": 1,
        "sku": "AUD-B8-ENG",
        "description": "Complete engine available or stripping for parts. Low oil consumption reported before removal.",
        "images": ["https://images.unsplash.com/photo-1493238792040-d710475a6d38?auto=format&fit=crop&q=80&w=800"],
        "shipping_options": ["Collection"],
        "location": "Durban, KZN",
    },
    {
        "seller": "coastal",
        "name": "Volkswagen Polo Vivo Tailgate - White",
        "category": "Body Parts",
        "make": "Volkswagen",
        "model": "Polo Vivo",
        "year_start": 2010,
        "year_end": 2018,
        "condition": "Used",
        "price": 3500.00,
        "quantity": 1,
        "sku": "VW-VIVO-TG-W",
        "description": "Straight tailgate, original paint. Includes glass and wiper motor.",
        "images": ["https://images.unsplash.com/photo-1541899481282-d53bffe3c35d?auto=format&fit=crop&q=80&w=800"],
        "shipping_options": ["Collection", "Courier"],
        "location": "Port Elizabeth, EC",
    },
    {
        "seller": "salvage",
        "name": "Salvage 2020 Toyota Hilux GD-6 (Non-Runner)",
        "category": "Damaged Vehicles (Salvage)",
        "make": "Toyota",
        "model": "Hilux",
        "year_start": 2020,
        "year_end": 2020,
        "condition": "Damaged/Salvage",
        "price": 185000.00,
        "quantity": 1,
        "sku": "SALV-TOY-001",
        "description": "Front-end accident damage. Engine starts but vehicle is non-runner due to suspension damage. Papers in order.",
        "images": ["https://images.unsplash.com/photo-1582266255765-fa5cf1a1d501?auto=format&fit=crop&q=80&w=800"],
        "shipping_options": ["Collection"],
        "location": "Cape Town, WC",
        "is_vehicle": True,
        "mileage": 45000,
        "transmission": "Manual",
    },
    {
        "seller": "salvage",
        "name": "Nissan NP200 1.6 Shock Absorbers Set",
        "category": "Suspension & Steering",
        "make": "Nissan",
        "model": "NP200",
        "year_start": 2008,
        "year_end": 2023,
        "condition": "New",
        "price": 1800.00,
        "quantity": 10,
        "sku": "NIS-NP2-SHK",
        "description": "Brand new Gabriel Gas-Rider shocks. Front and rear set for high-load capacity.",
        "images": ["https://images.unsplash.com/photo-1486006920555-c77dcf18193c?auto=format&fit=crop&q=80&w=800"],
        "shipping_options": ["Courier"],
        "location": "Polokwane, LP",
    },
]

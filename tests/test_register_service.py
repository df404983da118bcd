import unittest

import pytest

from servicehub import CircularDependencyError, Container, ResolutionError, ServiceMetadata, ServiceNotFoundError


class Engine:
    def __init__(self):
        self.serial_number = "A-123"


class Car:
    def __init__(self, engine: Engine):
        self.engine = engine


class CarFactory:
    def __init__(self, engine: Engine):
        self.engine = engine
        self.created = 0

    def create_car(self) -> Car:
        self.created += 1
        return Car(self.engine)


class Chicken:
    def __init__(self, egg: "Egg"):
        self.egg = egg


class Egg:
    def __init__(self, chicken: Chicken):
        self.chicken = chicken


class TestRegisterService(unittest.TestCase):
    cont: Container

    def setUp(self):
        self.cont = Container()

    def test_factory_function(self):
        built = []

        def make_car():
            car = Car(Engine())
            built.append(car)
            return car

        self.cont.register_service(type=Car, factory=make_car)

        car = self.cont.get(Car)
        assert car.engine.serial_number == "A-123"
        assert built == [car]

    def test_factory_function_bypasses_constructor_resolution(self):
        engine = Engine()
        self.cont.set(Engine, engine)
        self.cont.register_service(type=Car, factory=lambda: Car(Engine()))
        assert self.cont.get(Car).engine is not engine

    def test_factory_is_lazy_and_memoized(self):
        calls = []
        self.cont.register_service("answer", factory=lambda: calls.append(1) or 42)
        assert calls == []
        assert self.cont.get("answer") == 42
        assert self.cont.get("answer") == 42
        assert calls == [1]

    def test_factory_class(self):
        self.cont.register_service(type=Car, factory=(CarFactory, "create_car"))

        car = self.cont.get(Car)
        assert car.engine.serial_number == "A-123"
        assert car.engine is self.cont.get(Engine)
        assert self.cont.get(CarFactory).created == 1

    def test_named_factory_class(self):
        factory = CarFactory(Engine())
        self.cont.set("car.factory", factory)
        self.cont.register_service("car", factory=("car.factory", "create_car"))
        assert self.cont.get("car").engine is factory.engine

    def test_missing_factory_class_raises(self):
        self.cont.register_service("car", factory=("car.factory", "create_car"))
        with pytest.raises(ServiceNotFoundError) as ctx:
            self.cont.get("car")
        assert ctx.value.identifier == "car.factory"

    def test_missing_factory_method_propagates(self):
        self.cont.register_service(type=Car, factory=(CarFactory, "build"))
        with pytest.raises(AttributeError):
            self.cont.get(Car)

    def test_factory_errors_propagate_unchanged(self):
        def failing():
            msg = "no fuel"
            raise RuntimeError(msg)

        self.cont.register_service(type=Car, factory=failing)
        with pytest.raises(RuntimeError, match="no fuel"):
            self.cont.get(Car)

    def test_register_service_type_only(self):
        self.cont.register_service("vehicle", type=Car)
        assert isinstance(self.cont.get("vehicle").engine, Engine)

    def test_register_service_replaces_value(self):
        first = Car(Engine())
        self.cont.set(Car, first)
        self.cont.register_service(type=Car, factory=lambda: Car(Engine()))
        assert self.cont.get(Car) is not first


class TestServiceMetadataValidation(unittest.TestCase):
    def test_id_defaults_to_type(self):
        assert ServiceMetadata(type=Car).id is Car

    def test_requires_id_or_type(self):
        with pytest.raises(ValueError):
            ServiceMetadata(factory=lambda: 1)

    def test_rejects_malformed_factory_pair(self):
        with pytest.raises(ValueError):
            ServiceMetadata(type=Car, factory=(CarFactory,))

    def test_rejects_non_callable_factory(self):
        with pytest.raises(ValueError):
            ServiceMetadata(type=Car, factory=42)

    def test_entry_without_value_factory_or_type_raises(self):
        cont = Container()
        cont.set(ServiceMetadata(id="nothing"))
        with pytest.raises(ResolutionError):
            cont.get("nothing")


class TestCircularDependencies(unittest.TestCase):
    def test_cycle_is_reported_with_chain(self):
        cont = Container()

        with pytest.raises(CircularDependencyError) as ctx:
            cont.get(Chicken)
        assert ctx.value.chain == [Chicken, Egg, Chicken]
        assert "Chicken -> Egg -> Chicken" in str(ctx.value)

    def test_factory_requesting_itself_is_reported(self):
        cont = Container()
        cont.register_service("loop", factory=lambda: cont.get("loop"))
        with pytest.raises(CircularDependencyError) as ctx:
            cont.get("loop")
        assert ctx.value.chain == ["loop", "loop"]

    def test_container_recovers_after_cycle(self):
        cont = Container()
        cont.register_service("loop", factory=lambda: cont.get("loop"))
        with pytest.raises(CircularDependencyError):
            cont.get("loop")
        cont.set("loop", 1)
        assert cont.get("loop") == 1
